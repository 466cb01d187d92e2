import tkinter as tk
from tkinter import ttk

from logic.errors import AuthenticationError
from logic.tasks import run_async
from ui import theme


class LoginFrame(tk.Frame):
    """
    Login with a centered, responsive card.
    The card stays centered and its width adapts to window size.
    """
    def __init__(self, parent, controller):
        super().__init__(parent, bg=theme.BG)
        self.controller = controller
        self._busy = False

        # ---------- Root layout (fills entire page) ----------
        root = ttk.Frame(self, style="App.TFrame")
        root.pack(fill="both", expand=True)

        self.card = ttk.Frame(root, style="Card.TFrame", padding=28)
        self.card.place(relx=0.5, rely=0.5, anchor="c", width=460)
        root.bind("<Configure>", self._on_resize)

        # ---------- Card content ----------
        ttk.Label(self.card, text="法律风险案例库", style="Title.TLabel").pack(anchor="w")
        ttk.Label(self.card, text="请登录以继续", style="CardMuted.TLabel").pack(anchor="w", pady=(0, 12))

        form = ttk.Frame(self.card, style="Card.TFrame")
        form.pack(fill="x")
        form.grid_columnconfigure(0, weight=1)

        # Phone
        ttk.Label(form, text="账号 / 手机号", style="Field.TLabel").grid(row=0, column=0, sticky="w", pady=(2, 2))
        self.phone_var = tk.StringVar()
        self.phone_entry = ttk.Entry(form, textvariable=self.phone_var)
        self.phone_entry.grid(row=1, column=0, sticky="ew")
        self.phone_err = ttk.Label(form, text="", style="Error.TLabel")
        self.phone_err.grid(row=2, column=0, sticky="w")

        # Password with eye toggle
        ttk.Label(form, text="密码", style="Field.TLabel").grid(row=3, column=0, sticky="w", pady=(8, 2))
        pw_row = ttk.Frame(form, style="Card.TFrame")
        pw_row.grid(row=4, column=0, sticky="ew")
        pw_row.grid_columnconfigure(0, weight=1)

        self.password_var = tk.StringVar()
        self.password_entry = ttk.Entry(pw_row, textvariable=self.password_var, show="•")
        self.password_entry.grid(row=0, column=0, sticky="ew")

        self._pw_hidden = True
        self.eye_btn = ttk.Button(pw_row, text="显示", width=6,
                                  style="Ghost.TButton", command=self._toggle_pw)
        self.eye_btn.grid(row=0, column=1, padx=(8, 0), sticky="e")
        self.password_err = ttk.Label(form, text="", style="Error.TLabel")
        self.password_err.grid(row=5, column=0, sticky="w")

        self.login_btn = ttk.Button(self.card, text="登 录", style="Accent.TButton", command=self.login)
        self.login_btn.pack(fill="x", pady=(16, 8))

        for entry in (self.phone_entry, self.password_entry):
            entry.bind("<Return>", lambda e: self.login())

    # ---------- lifecycle ----------
    def on_show(self, route=None):
        self.password_var.set("")
        self.after(100, self.phone_entry.focus_set)

    # ---------- Responsive behavior ----------
    def _on_resize(self, event=None):
        w = max(self.winfo_width(), 380)
        target_w = max(380, min(int(w * 0.36), 560))
        self.card.place_configure(relx=0.5, rely=0.5, anchor="c", width=target_w)

    # ---------- UI actions ----------
    def _toggle_pw(self):
        self._pw_hidden = not self._pw_hidden
        self.password_entry.configure(show="•" if self._pw_hidden else "")
        self.eye_btn.configure(text=("显示" if self._pw_hidden else "隐藏"))

    def _set_busy(self, busy: bool):
        self._busy = busy
        self.login_btn.configure(text="登录中..." if busy else "登 录",
                                 state="disabled" if busy else "normal")

    def login(self):
        if self._busy:
            return
        phone = self.phone_var.get().strip()
        password = self.password_var.get()
        self.phone_err.configure(text="" if phone else "请输入账号")
        self.password_err.configure(text="" if password else "请输入密码")
        if not phone or not password:
            return

        self._set_busy(True)
        run_async(self, lambda: self.controller.session.login(phone, password),
                  on_done=self._on_login, on_error=self._on_failed)

    def _on_login(self, user):
        self._set_busy(False)
        self.controller.navigate(str(self.controller.router.take_pending()))

    def _on_failed(self, error):
        self._set_busy(False)
        if isinstance(error, AuthenticationError):
            self.password_err.configure(text="账号或密码错误")
