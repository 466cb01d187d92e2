import tkinter as tk
from tkinter import ttk, messagebox

from logic.case_list import RESET, CaseListController, CaseListState
from logic.tasks import run_async
from ui import theme
from ui.case_dialog import CaseDialog

ALL_TAGS = "所有标签"


class CasesFrame(tk.Frame):
    """Case list with search, tag filter, sort toggle, paging and admin actions."""
    def __init__(self, parent, controller):
        super().__init__(parent, bg=theme.BG)
        self.controller = controller
        self.ctrl = CaseListController(controller.backend.cases, controller.settings.page_size)
        self._search_job = None
        self._suspend_trace = False

        # ---------- Root ----------
        root = ttk.Frame(self, style="App.TFrame")
        root.pack(fill="both", expand=True)

        topbar = ttk.Frame(root, style="Toolbar.TFrame", padding=(16, 12))
        topbar.pack(fill="x")
        ttk.Label(topbar, text="案例管理", style="H1.TLabel").pack(side="left")
        self.btn_add = ttk.Button(topbar, text="＋ 新建案例", style="Accent.TButton", command=self.add_case)
        self.btn_add.pack(side="right")

        # Stats cards
        stats = ttk.Frame(root, style="Toolbar.TFrame", padding=(16, 0))
        stats.pack(fill="x")
        self.stat_labels = {}
        for key, label in (("total", "总案例数"), ("shown", "当前展示"), ("top", "高频标签"), ("unique", "标签总数")):
            card = ttk.Frame(stats, style="Card.TFrame", padding=12)
            card.pack(side="left", fill="x", expand=True, padx=(0, 10))
            ttk.Label(card, text=label, style="CardMuted.TLabel").pack(anchor="w")
            value = ttk.Label(card, text="-", style="Stat.TLabel")
            value.pack(anchor="w")
            self.stat_labels[key] = value

        # Controls: search + tag filter + filter/sort button
        controls = ttk.Frame(root, style="Toolbar.TFrame", padding=(16, 12, 16, 0))
        controls.pack(fill="x")

        left = ttk.Frame(controls, style="Toolbar.TFrame")
        left.pack(side="left", fill="x", expand=True)
        ttk.Label(left, text="🔎", style="Muted.TLabel").pack(side="left", padx=(0, 8))
        self.search_var = tk.StringVar()
        self.search_entry = ttk.Entry(left, textvariable=self.search_var, width=40)
        self.search_entry.pack(side="left", fill="x", expand=True)

        right = ttk.Frame(controls, style="Toolbar.TFrame")
        right.pack(side="right")
        self.tag_var = tk.StringVar(value=ALL_TAGS)
        self.tag_box = ttk.Combobox(right, textvariable=self.tag_var, state="readonly", width=22)
        self.tag_box.pack(side="left", padx=(12, 6))
        self.tag_box.bind("<<ComboboxSelected>>", lambda e: self._on_tag_selected())
        self.btn_filter = ttk.Button(right, text="", style="Ghost.TButton", command=self.filter_or_sort)
        self.btn_filter.pack(side="left", padx=6)

        # Table card
        card = ttk.Frame(root, style="Card.TFrame", padding=12)
        card.pack(fill="both", expand=True, padx=16, pady=12)

        columns = ("title", "tags", "author", "date", "files")
        self.tree = ttk.Treeview(card, columns=columns, show="headings", selectmode="browse")
        headers = {"title": "标题", "tags": "标签", "author": "作者", "date": "创建时间", "files": "附件"}
        widths = {"title": 380, "tags": 220, "author": 100, "date": 150, "files": 60}
        for col in columns:
            self.tree.heading(col, text=headers[col])
            self.tree.column(col, stretch=True, width=widths[col])
        self.tree.tag_configure("evenrow", background=theme.ROW_EVEN)
        self.tree.tag_configure("oddrow", background=theme.ROW_ODD)

        yscroll = ttk.Scrollbar(card, orient="vertical", command=self.tree.yview)
        self.tree.configure(yscrollcommand=yscroll.set)
        self.tree.pack(side="left", fill="both", expand=True)
        yscroll.pack(side="right", fill="y")

        # Pager + row actions
        bottom = ttk.Frame(root, style="Toolbar.TFrame", padding=(16, 0, 16, 12))
        bottom.pack(fill="x")
        self.btn_open = ttk.Button(bottom, text="查看", style="Accent.TButton", command=self.open_detail)
        self.btn_edit = ttk.Button(bottom, text="编辑", style="Ghost.TButton", command=self.edit_case)
        self.btn_del = ttk.Button(bottom, text="删除", style="Danger.TButton", command=self.delete_case)
        for b in (self.btn_open, self.btn_edit, self.btn_del):
            b.pack(side="left", padx=(0, 6))
        self.btn_next = ttk.Button(bottom, text="下一页 →", style="Ghost.TButton",
                                   command=lambda: self.go_to(self.ctrl.state.page + 1))
        self.btn_next.pack(side="right")
        self.page_label = ttk.Label(bottom, text="", style="Muted.TLabel")
        self.page_label.pack(side="right", padx=8)
        self.btn_prev = ttk.Button(bottom, text="← 上一页", style="Ghost.TButton",
                                   command=lambda: self.go_to(self.ctrl.state.page - 1))
        self.btn_prev.pack(side="right")

        # bindings
        self.search_var.trace_add("write", lambda *_: self._on_search_changed())
        self.tree.bind("<Double-1>", lambda e: self.open_detail())
        self.tree.bind("<Return>", lambda e: self.open_detail())
        self.tree.bind("<Delete>", lambda e: self.delete_case())

    # ---------- lifecycle ----------
    def on_show(self, route):
        self.ctrl.state = CaseListState.from_query(route.query)
        self._suspend_trace = True
        self.search_var.set(self.ctrl.state.keyword)
        self._suspend_trace = False
        self.tag_var.set(self.ctrl.state.tag or ALL_TAGS)

        admin = self.controller.session.is_admin
        for b in (self.btn_add, self.btn_edit, self.btn_del):
            b.configure(state="normal" if admin else "disabled")

        self.refresh_tags()
        self.refresh()
        self.search_entry.focus_set()

    # ---------- data ----------
    def refresh(self):
        """Push state to the route, then fetch; stale responses are dropped."""
        self.controller.replace_query(self.ctrl.state.to_query())
        self._update_filter_button()
        generation = self.ctrl.next_generation()
        run_async(self, lambda: self.ctrl.load(generation), on_done=self._render)

    def refresh_tags(self):
        run_async(self, self.ctrl.load_tags, on_done=self._render_tags)

    def _render(self, page):
        if page is None:
            return
        self.tree.delete(*self.tree.get_children())
        for i, case in enumerate(page.content):
            tag = "evenrow" if i % 2 == 0 else "oddrow"
            self.tree.insert(
                "", "end", iid=case.id,
                values=(case.title, "、".join(case.tags), case.author,
                        case.create_date[:16].replace("T", " "), len(case.attachments)),
                tags=(tag,)
            )
        self.page_label.configure(
            text=f"第 {page.page} / {max(page.total_pages, 1)} 页 · 共 {page.total_elements} 条")
        self.btn_prev.configure(state="normal" if page.has_previous else "disabled")
        self.btn_next.configure(state="normal" if page.has_next else "disabled")
        self._render_stats()

    def _render_tags(self, tags):
        self.tag_box.configure(values=[ALL_TAGS] + [f"{t.tag} ({t.count})" for t in tags])
        self._render_stats()

    def _render_stats(self):
        s = self.ctrl.stats
        self.stat_labels["total"].configure(text=str(s.total_count))
        self.stat_labels["shown"].configure(text=str(s.shown_count))
        self.stat_labels["top"].configure(text=s.top_tag_name)
        self.stat_labels["unique"].configure(text=str(s.unique_tags))

    def _update_filter_button(self):
        if self.ctrl.state.has_filters:
            self.btn_filter.configure(text="⟲ 重置筛选", style="Danger.TButton")
        else:
            arrow = "↓ 最新在前" if self.ctrl.state.sort_dir == "desc" else "↑ 最早在前"
            self.btn_filter.configure(text=arrow, style="Ghost.TButton")

    # ---------- filters ----------
    def _on_search_changed(self):
        if self._suspend_trace:
            return
        if self._search_job:
            self.after_cancel(self._search_job)
        self._search_job = self.after(300, self._apply_search)

    def _apply_search(self):
        self._search_job = None
        self.ctrl.state.set_keyword(self.search_var.get())
        self.refresh()

    def _on_tag_selected(self):
        value = self.tag_var.get()
        tag = "" if value == ALL_TAGS else value.rsplit(" (", 1)[0]
        self.ctrl.state.set_tag(tag)
        self.refresh()

    def filter_or_sort(self):
        action = self.ctrl.state.filter_or_sort()
        if action == RESET:
            self._suspend_trace = True
            self.search_var.set("")
            self._suspend_trace = False
            self.tag_var.set(ALL_TAGS)
            self.controller.notifier.success("筛选条件已重置")
        elif self.ctrl.state.sort_dir == "desc":
            self.controller.notifier.success("已按时间倒序排列 (最新在前)")
        else:
            self.controller.notifier.success("已按时间正序排列 (最早在前)")
        self.refresh()

    def go_to(self, page):
        if self.ctrl.state.go_to(page, self.ctrl.total_pages):
            self.refresh()

    # ---------- actions ----------
    def _selected_id(self):
        sel = self.tree.selection()
        if not sel:
            messagebox.showwarning("提示", "请先选择一个案例", parent=self)
            return None
        return sel[0]

    def open_detail(self):
        case_id = self._selected_id()
        if case_id:
            self.controller.navigate(f"cases/{case_id}")

    def add_case(self):
        dlg = CaseDialog(self, self.controller, title="新建案例")
        self.wait_window(dlg)
        if dlg.result:
            self._after_save()

    def edit_case(self):
        case_id = self._selected_id()
        if not case_id:
            return
        # the list rows are summaries; edit the full record
        run_async(self, lambda: self.controller.backend.cases.get(case_id), on_done=self._open_editor)

    def _open_editor(self, case):
        dlg = CaseDialog(self, self.controller, title="编辑案例", case=case)
        self.wait_window(dlg)
        if dlg.result:
            self._after_save()

    def _after_save(self):
        self.refresh()
        self.refresh_tags()

    def delete_case(self):
        case_id = self._selected_id()
        if not case_id:
            return
        if not messagebox.askyesno("确认删除", "确定要删除这个案例吗？此操作无法撤销。", parent=self):
            return
        run_async(self, lambda: self.ctrl.delete(case_id, confirm=lambda: True),
                  on_done=self._on_deleted)

    def _on_deleted(self, _):
        self.controller.notifier.success("删除成功")
        self.controller.replace_query(self.ctrl.state.to_query())
        self._render(self.ctrl.page)
        self.refresh_tags()
