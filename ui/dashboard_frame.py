import tkinter as tk
from tkinter import ttk

from logic.stats import load_dashboard
from logic.tasks import run_async
from ui import theme


class DashboardFrame(tk.Frame):
    """Landing page: totals, the dominant risk tag, and the latest cases."""
    def __init__(self, parent, controller):
        super().__init__(parent, bg=theme.BG)
        self.controller = controller
        self._recent = []

        root = ttk.Frame(self, style="App.TFrame", padding=(16, 12))
        root.pack(fill="both", expand=True)

        self.greeting = ttk.Label(root, text="", style="H1.TLabel")
        self.greeting.pack(anchor="w")
        ttk.Label(root, text="法律风险案例归档与防控概览", style="Muted.TLabel").pack(anchor="w", pady=(0, 12))

        cards = ttk.Frame(root, style="App.TFrame")
        cards.pack(fill="x")
        self.total_value = self._stat_card(cards, "总案例归档")
        self.top_value = self._stat_card(cards, "主要风险类型")
        self.recent_value = self._stat_card(cards, "近期更新")

        card = ttk.Frame(root, style="Card.TFrame", padding=12)
        card.pack(fill="both", expand=True, pady=(12, 0))
        head = ttk.Frame(card, style="Card.TFrame")
        head.pack(fill="x")
        ttk.Label(head, text="最新案例", style="Section.TLabel").pack(side="left")
        ttk.Button(head, text="查看全部 →", style="Ghost.TButton",
                   command=lambda: controller.navigate("cases")).pack(side="right")

        columns = ("title", "tags", "date")
        self.tree = ttk.Treeview(card, columns=columns, show="headings", selectmode="browse", height=6)
        for col, text, width in (("title", "标题", 420), ("tags", "标签", 260), ("date", "创建时间", 160)):
            self.tree.heading(col, text=text)
            self.tree.column(col, width=width, stretch=True)
        self.tree.pack(fill="both", expand=True, pady=(8, 0))
        self.tree.bind("<Double-1>", lambda e: self._open_selected())
        self.tree.bind("<Return>", lambda e: self._open_selected())

    def _stat_card(self, parent, label):
        card = ttk.Frame(parent, style="Card.TFrame", padding=16)
        card.pack(side="left", fill="x", expand=True, padx=(0, 12))
        ttk.Label(card, text=label, style="CardMuted.TLabel").pack(anchor="w")
        value = ttk.Label(card, text="-", style="Stat.TLabel")
        value.pack(anchor="w")
        return value

    # ---------- lifecycle ----------
    def on_show(self, route=None):
        user = self.controller.session.user
        self.greeting.configure(text=f"你好, {user.name}" if user else "你好")
        for v in (self.total_value, self.top_value, self.recent_value):
            v.configure(text="-")
        run_async(self, lambda: load_dashboard(self.controller.backend.cases), on_done=self._render)

    def _render(self, data):
        self.total_value.configure(text=str(data.total_cases))
        self.top_value.configure(text=f"{data.top_tag.tag}  {data.top_tag.count} 起")
        self.recent_value.configure(text=str(len(data.recent_cases)))
        self._recent = data.recent_cases
        self.tree.delete(*self.tree.get_children())
        for c in data.recent_cases:
            self.tree.insert("", "end", iid=c.id, values=(c.title, "、".join(c.tags), c.create_date[:10]))

    def _open_selected(self):
        sel = self.tree.selection()
        if sel:
            self.controller.navigate(f"cases/{sel[0]}")
