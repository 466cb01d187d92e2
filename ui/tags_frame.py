import tkinter as tk
from tkinter import ttk

from logic import stats
from logic.tasks import run_async
from ui import theme

CLOUD_STYLE = {
    stats.POPULAR: {"font": (theme.FONT, 14, "bold"), "bg": theme.PRIMARY, "fg": "#ffffff", "padx": 14, "pady": 6},
    stats.MEDIUM: {"font": (theme.FONT, 12), "bg": "#e0ecf8", "fg": theme.PRIMARY, "padx": 10, "pady": 4},
    stats.SMALL: {"font": (theme.FONT, 10), "bg": theme.CARD_BG, "fg": theme.MUTED, "padx": 8, "pady": 3},
}


class TagsFrame(tk.Frame):
    """Tag distribution: pie chart, ranked list and a tag cloud."""
    def __init__(self, parent, controller):
        super().__init__(parent, bg=theme.BG)
        self.controller = controller
        self.tags = []

        root = ttk.Frame(self, style="App.TFrame", padding=(16, 12))
        root.pack(fill="both", expand=True)
        ttk.Label(root, text="标签统计", style="H1.TLabel").pack(anchor="w")
        ttk.Label(root, text="按风险类型分布的案例数量", style="Muted.TLabel").pack(anchor="w", pady=(0, 12))

        upper = ttk.Frame(root, style="App.TFrame")
        upper.pack(fill="both", expand=True)

        chart = ttk.Frame(upper, style="Card.TFrame", padding=12)
        chart.pack(side="left", fill="both", expand=True, padx=(0, 12))
        ttk.Label(chart, text="分布图", style="Section.TLabel").pack(anchor="w")
        self.canvas = tk.Canvas(chart, bg=theme.CARD_BG, highlightthickness=0, height=300)
        self.canvas.pack(fill="both", expand=True)
        self.canvas.bind("<Configure>", lambda e: self._draw_pie())

        listing = ttk.Frame(upper, style="Card.TFrame", padding=12)
        listing.pack(side="left", fill="both", expand=True)
        ttk.Label(listing, text="详细列表", style="Section.TLabel").pack(anchor="w")
        self.tree = ttk.Treeview(listing, columns=("rank", "tag", "count"), show="headings", height=10)
        for col, text, width in (("rank", "#", 40), ("tag", "标签", 220), ("count", "案例", 80)):
            self.tree.heading(col, text=text)
            self.tree.column(col, width=width, stretch=col == "tag")
        self.tree.pack(fill="both", expand=True, pady=(6, 0))
        self.tree.bind("<Double-1>", lambda e: self._open_selected())

        cloud_card = ttk.Frame(root, style="Card.TFrame", padding=12)
        cloud_card.pack(fill="x", pady=(12, 0))
        ttk.Label(cloud_card, text="# 词云概览", style="Section.TLabel").pack(anchor="w")
        # a read-only Text gives flow layout for the tag widgets
        self.cloud = tk.Text(cloud_card, height=5, bg=theme.CARD_BG, relief="flat",
                             wrap="word", cursor="arrow", highlightthickness=0)
        self.cloud.pack(fill="x", pady=(6, 0))

    # ---------- lifecycle ----------
    def on_show(self, route=None):
        run_async(self, self.controller.backend.cases.tags, on_done=self._render)

    def _render(self, tags):
        self.tags = tags
        self._draw_pie()

        self.tree.delete(*self.tree.get_children())
        for i, t in enumerate(stats.ranked(tags), start=1):
            self.tree.insert("", "end", iid=t.tag, values=(i, t.tag, f"{t.count} 案例"))

        self.cloud.configure(state="normal")
        self.cloud.delete("1.0", "end")
        for t, bucket in stats.tag_cloud(tags):
            label = tk.Label(self.cloud, text=t.tag, cursor="hand2", **CLOUD_STYLE[bucket])
            label.bind("<Button-1>", lambda e, tag=t.tag: self._open_tag(tag))
            self.cloud.window_create("end", window=label, padx=4, pady=4)
        self.cloud.configure(state="disabled")

    def _draw_pie(self):
        c = self.canvas
        c.delete("all")
        slices = stats.pie_slices(self.tags)
        w, h = c.winfo_width(), c.winfo_height()
        if not slices:
            c.create_text(w // 2, h // 2, text="暂无数据", fill=theme.MUTED)
            return
        r = max(20, min(w // 2 - 140, h // 2 - 20))
        cx, cy = r + 20, h // 2
        for s in slices:
            # a full circle arc with extent 360 draws nothing in Tk
            extent = min(s.extent, 359.99)
            c.create_arc(cx - r, cy - r, cx + r, cy + r, start=s.start, extent=extent,
                         fill=s.color, outline="#ffffff", width=2)
        inner = r * 0.6
        c.create_oval(cx - inner, cy - inner, cx + inner, cy + inner, fill=theme.CARD_BG, outline="")

        lx, ly = cx + r + 30, max(16, cy - len(slices) * 11)
        for s in slices:
            c.create_rectangle(lx, ly - 6, lx + 12, ly + 6, fill=s.color, outline="")
            c.create_text(lx + 18, ly, text=f"{s.tag} ({s.count})", anchor="w", fill=theme.FG)
            ly += 22

    def _open_selected(self):
        sel = self.tree.selection()
        if sel:
            self._open_tag(sel[0])

    def _open_tag(self, tag):
        self.controller.navigate("cases", {"tag": tag})
