import logging
import tkinter as tk
from tkinter import ttk

from logic.backend import build_backend
from logic.config import Settings
from logic.notify import Notifier
from logic.routing import CASES, DASHBOARD, LOGIN, TAGS, Route, Router
from logic.tasks import run_async
from ui import theme
from ui.cases_frame import CasesFrame
from ui.dashboard_frame import DashboardFrame
from ui.detail_frame import DetailFrame
from ui.login_frame import LoginFrame
from ui.tags_frame import TagsFrame

logger = logging.getLogger(__name__)


class TkNotifier(Notifier):
    """Toast-like notifications in the window's status bar."""

    COLORS = {"success": "#047857", "info": theme.MUTED, "error": theme.DANGER}

    def __init__(self, app: "App"):
        self.app = app
        self._clear_job = None

    def success(self, message):
        super().success(message)
        self._show(message, "success")

    def info(self, message):
        super().info(message)
        self._show(message, "info")

    def error(self, message):
        super().error(message)
        self._show(message, "error")

    def _show(self, message, kind):
        # may be called from a worker thread
        self.app.after(0, lambda: self._render(message, kind))

    def _render(self, message, kind):
        self.app.status.configure(text=message, fg=self.COLORS[kind])
        if self._clear_job:
            self.app.after_cancel(self._clear_job)
        self._clear_job = self.app.after(4000, lambda: self.app.status.configure(text=""))


class App(tk.Tk):
    def __init__(self, settings: Settings = None):
        super().__init__()
        self.title("法律风险案例库")
        self.geometry("1200x760")
        self.settings = settings or Settings.from_env()
        theme.apply(self)
        self.configure(bg=theme.BG)

        # App state
        self.notifier = TkNotifier(self)
        self.router = Router(lambda: self.session.is_authenticated, on_change=self._on_route)
        self.backend = build_backend(self.settings, self.notifier, self.router)
        self.session = self.backend.session

        # Top navigation, hidden on the login page
        self.nav = ttk.Frame(self, style="Nav.TFrame", padding=(16, 8))
        ttk.Label(self.nav, text="⚖ 法律风险案例库", style="Nav.TLabel").pack(side="left", padx=(0, 24))
        for label, target in (("首页概览", DASHBOARD), ("案例管理", CASES), ("标签统计", TAGS)):
            ttk.Button(self.nav, text=label, style="Nav.TButton",
                       command=lambda t=target: self.navigate(t)).pack(side="left", padx=2)
        ttk.Button(self.nav, text="退出", style="Nav.TButton", command=self.logout).pack(side="right")
        self.user_label = ttk.Label(self.nav, text="", style="Nav.TLabel")
        self.user_label.pack(side="right", padx=12)

        self.status = tk.Label(self, text="", anchor="w", bg=theme.BG, fg=theme.MUTED, padx=16, pady=4)
        self.status.pack(side="bottom", fill="x")

        # Main container that hosts all pages
        container = tk.Frame(self, bg=theme.BG)
        container.pack(side="bottom", fill="both", expand=True)
        container.grid_rowconfigure(0, weight=1)
        container.grid_columnconfigure(0, weight=1)
        self.container = container

        self.frames = {}
        for name, F in (("login", LoginFrame), ("dashboard", DashboardFrame),
                        ("cases", CasesFrame), ("detail", DetailFrame), ("tags", TagsFrame)):
            frame = F(parent=container, controller=self)
            self.frames[name] = frame
            frame.grid(row=0, column=0, sticky="nsew")

        loading = tk.Label(container, text="系统加载中...", bg=theme.BG, fg=theme.PRIMARY)
        loading.grid(row=0, column=0, sticky="nsew")
        run_async(self, self.session.restore,
                  on_done=lambda _: (loading.destroy(), self.navigate(DASHBOARD)))

    # ---------- routing ----------
    def navigate(self, target: str, query: dict = None) -> Route:
        return self.router.navigate(target, query)

    def replace_query(self, query: dict) -> None:
        self.router.replace_query(query)

    def _on_route(self, route: Route):
        # the 401 redirect arrives from a worker thread
        self.after(0, lambda: self._show_route(route))

    def _show_route(self, route: Route):
        name, case_id = route.match()
        if name == LOGIN:
            self.nav.pack_forget()
        else:
            user = self.session.user
            self.user_label.configure(text=f"{user.name}{' (管理员)' if user.is_admin else ''}" if user else "")
            self.nav.pack(side="top", fill="x", before=self.container)
        frame = self.frames[name]
        frame.tkraise()
        logger.debug("Showing %s", route)
        if name == "detail":
            frame.on_show(route, case_id)
        else:
            frame.on_show(route)

    def logout(self):
        self.session.logout()
        self.navigate(LOGIN)


def main():
    settings = Settings.from_env()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = App(settings)
    app.mainloop()
    app.backend.api.close()


if __name__ == "__main__":
    main()
