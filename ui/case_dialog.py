import os
import tkinter as tk
from tkinter import ttk, messagebox, filedialog

from logic.attachments import format_size
from logic.case_form import CaseForm
from logic.tasks import run_async
from ui import theme

FILE_TYPES = [
    ("支持的文件", "*.png *.jpg *.jpeg *.gif *.bmp *.webp *.pdf *.doc *.docx *.xls *.xlsx *.txt"),
    ("All files", "*.*"),
]


def _default_initialdir() -> str:
    for p in (os.path.expanduser("~/Documents"), os.path.expanduser("~"), os.getcwd()):
        if os.path.isdir(p):
            return p
    return os.getcwd()


class CaseDialog(tk.Toplevel):
    """Create/edit dialog: case fields, repeatable groups and attachments."""
    def __init__(self, parent, controller, title, case=None):
        super().__init__(parent)
        self.title(title)
        self.controller = controller
        self.result = None
        self.form = CaseForm(case, max_upload_bytes=controller.settings.max_upload_bytes)
        self._drag_key = None
        self.transient(parent)
        self.grab_set()
        self.configure(bg=theme.BG)

        # ---------- scrollable body ----------
        body = ttk.Frame(self, style="Card.TFrame")
        body.pack(fill="both", expand=True)
        canvas = tk.Canvas(body, bg=theme.CARD_BG, highlightthickness=0)
        yscroll = ttk.Scrollbar(body, orient="vertical", command=canvas.yview)
        canvas.configure(yscrollcommand=yscroll.set)
        yscroll.pack(side="right", fill="y")
        canvas.pack(side="left", fill="both", expand=True)
        outer = ttk.Frame(canvas, style="Card.TFrame", padding=20)
        window = canvas.create_window((0, 0), window=outer, anchor="nw")
        outer.bind("<Configure>", lambda e: canvas.configure(scrollregion=canvas.bbox("all")))
        canvas.bind("<Configure>", lambda e: canvas.itemconfigure(window, width=e.width))
        self._canvas = canvas

        head = ttk.Frame(outer, style="Card.TFrame")
        head.pack(fill="x", pady=(0, 8))
        ttk.Label(head, text=title, style="Title.TLabel").pack(side="left")
        ttk.Label(head, text="请填写完整的案件详情、法律依据及防控措施。",
                  style="CardMuted.TLabel").pack(side="left", padx=12)

        # ---------- basic info ----------
        ttk.Label(outer, text="基本信息", style="Section.TLabel").pack(anchor="w", pady=(8, 4))
        ttk.Label(outer, text="案例标题 *", style="Field.TLabel").pack(anchor="w")
        self.title_var = tk.StringVar(value=self.form.title)
        self.title_entry = ttk.Entry(outer, textvariable=self.title_var)
        self.title_entry.pack(fill="x")
        self.title_err = ttk.Label(outer, text="", style="Error.TLabel")
        self.title_err.pack(anchor="w")

        ttk.Label(outer, text="标签 (用逗号分隔)", style="Field.TLabel").pack(anchor="w")
        self.tags_var = tk.StringVar(value=self.form.tags_text)
        ttk.Entry(outer, textvariable=self.tags_var).pack(fill="x", pady=(0, 8))

        ttk.Label(outer, text="案件记录 *", style="Field.TLabel").pack(anchor="w")
        self.record_text = self._text(outer, height=7, value=self.form.case_record)
        self.record_text.pack(fill="x")
        self.record_err = ttk.Label(outer, text="", style="Error.TLabel")
        self.record_err.pack(anchor="w")

        # ---------- legal provisions ----------
        row = ttk.Frame(outer, style="Card.TFrame")
        row.pack(fill="x", pady=(8, 4))
        ttk.Label(row, text="法律规定", style="Section.TLabel").pack(side="left")
        ttk.Button(row, text="＋ 添加法规", style="Ghost.TButton",
                   command=self._add_provision).pack(side="right")
        self.provisions_box = ttk.Frame(outer, style="Card.TFrame")
        self.provisions_box.pack(fill="x")
        self._provision_rows = []

        ttk.Label(outer, text="风险提示", style="Field.TLabel").pack(anchor="w", pady=(8, 0))
        self.risk_text = self._text(outer, height=3, value=self.form.risk_summary)
        self.risk_text.pack(fill="x")

        # ---------- prevention measures ----------
        row = ttk.Frame(outer, style="Card.TFrame")
        row.pack(fill="x", pady=(12, 4))
        ttk.Label(row, text="防控措施", style="Section.TLabel").pack(side="left")
        ttk.Button(row, text="＋ 添加措施", style="Ghost.TButton",
                   command=self._add_measure).pack(side="right")
        self.measures_box = ttk.Frame(outer, style="Card.TFrame")
        self.measures_box.pack(fill="x")
        self._measure_vars = []

        # ---------- attachments ----------
        row = ttk.Frame(outer, style="Card.TFrame")
        row.pack(fill="x", pady=(12, 4))
        ttk.Label(row, text="附件资料", style="Section.TLabel").pack(side="left")
        limit_mb = self.form.max_upload_bytes // (1024 * 1024)
        ttk.Label(row, text=f"单个文件不超过 {limit_mb}MB，拖动条目可调整顺序",
                  style="CardMuted.TLabel").pack(side="left", padx=12)

        list_row = ttk.Frame(outer, style="Card.TFrame")
        list_row.pack(fill="x")
        self.lb = tk.Listbox(list_row, height=6, activestyle="none",
                             bg=theme.FIELD_BG, fg=theme.FG, highlightthickness=0,
                             selectbackground=theme.BORDER, selectforeground=theme.FG)
        self.lb.pack(side="left", fill="both", expand=True)
        self.lb.bind("<Button-1>", self._drag_start)
        self.lb.bind("<B1-Motion>", self._drag_motion)
        self.lb.bind("<ButtonRelease-1>", self._drag_end)

        btns = ttk.Frame(list_row, style="Card.TFrame")
        btns.pack(side="left", padx=8, fill="y")
        self.upload_btn = ttk.Button(btns, text="上传…", style="Ghost.TButton", command=self._add_files)
        self.upload_btn.pack(fill="x", pady=2)
        ttk.Button(btns, text="删除", style="Ghost.TButton", command=self._remove_selected).pack(fill="x", pady=2)
        self.upload_status = ttk.Label(outer, text="", style="CardMuted.TLabel")
        self.upload_status.pack(anchor="w")

        # ---------- actions ----------
        actions = ttk.Frame(self, style="Card.TFrame", padding=(20, 10))
        actions.pack(fill="x", side="bottom")
        ttk.Button(actions, text="取消", style="Ghost.TButton", command=self._cancel).pack(side="right", padx=6)
        self.save_btn = ttk.Button(actions, text="保存", style="Accent.TButton", command=self._save)
        self.save_btn.pack(side="right")

        self._render_provisions()
        self._render_measures()
        self._render_attachments()

        # ---------- Behavior ----------
        self.bind("<Escape>", lambda e: self._cancel())
        self.bind("<Control-s>", lambda e: self._save())
        self.after(50, self.title_entry.focus_set)
        self.minsize(760, 640)
        self._center_on_parent(parent)

    # ---------- Helpers ----------
    def _text(self, parent, height, value=""):
        t = tk.Text(parent, height=height, wrap="word", bg=theme.FIELD_BG, fg=theme.FG,
                    insertbackground=theme.FG, relief="flat", highlightthickness=1,
                    highlightbackground=theme.BORDER, highlightcolor=theme.PRIMARY)
        t.insert("1.0", value)
        return t

    def _center_on_parent(self, parent):
        try:
            self.update_idletasks()
            top = parent.winfo_toplevel()
            x = top.winfo_rootx() + (top.winfo_width() - self.winfo_width()) // 2
            y = top.winfo_rooty() + (top.winfo_height() - self.winfo_height()) // 2
            self.geometry(f"+{max(x, 0)}+{max(y, 0)}")
        except tk.TclError:
            pass

    # ---------- repeatable groups ----------
    def _sync_groups(self):
        for i, (law_var, content_text) in enumerate(self._provision_rows):
            self.form.update_provision(i, law_var.get(), content_text.get("1.0", "end-1c"))
        for i, var in enumerate(self._measure_vars):
            self.form.update_measure(i, var.get())

    def _render_provisions(self):
        for w in self.provisions_box.winfo_children():
            w.destroy()
        self._provision_rows = []
        for i, p in enumerate(self.form.provisions):
            card = ttk.Frame(self.provisions_box, style="Card.TFrame", padding=(0, 4))
            card.pack(fill="x")
            top = ttk.Frame(card, style="Card.TFrame")
            top.pack(fill="x")
            law_var = tk.StringVar(value=p.law_name)
            ttk.Entry(top, textvariable=law_var).pack(side="left", fill="x", expand=True)
            ttk.Button(top, text="✕", width=3, style="Ghost.TButton",
                       command=lambda i=i: self._remove_provision(i)).pack(side="left", padx=(6, 0))
            content = self._text(card, height=3, value=p.content)
            content.pack(fill="x", pady=(4, 0))
            err = ttk.Label(card, text="", style="Error.TLabel")
            err.pack(anchor="w")
            msgs = [self.form.errors.get(f"provisions.{i}.{k}") for k in ("law_name", "content")]
            err.configure(text="  ".join(m for m in msgs if m))
            self._provision_rows.append((law_var, content))

    def _add_provision(self):
        self._sync_groups()
        self.form.add_provision()
        self._render_provisions()

    def _remove_provision(self, index):
        self._sync_groups()
        self.form.remove_provision(index)
        self._render_provisions()

    def _render_measures(self):
        for w in self.measures_box.winfo_children():
            w.destroy()
        self._measure_vars = []
        for i, m in enumerate(self.form.measures):
            row = ttk.Frame(self.measures_box, style="Card.TFrame", padding=(0, 2))
            row.pack(fill="x")
            ttk.Label(row, text=f"{i + 1}.", style="Card.TLabel", width=3).pack(side="left")
            var = tk.StringVar(value=m)
            ttk.Entry(row, textvariable=var).pack(side="left", fill="x", expand=True)
            ttk.Button(row, text="✕", width=3, style="Ghost.TButton",
                       command=lambda i=i: self._remove_measure(i)).pack(side="left", padx=(6, 0))
            self._measure_vars.append(var)

    def _add_measure(self):
        self._sync_groups()
        self.form.add_measure()
        self._render_measures()

    def _remove_measure(self, index):
        self._sync_groups()
        self.form.remove_measure(index)
        self._render_measures()

    # ---------- attachments ----------
    def _render_attachments(self, select=None):
        self.lb.delete(0, "end")
        for a in self.form.attachments:
            icon = "🖼" if a.is_image else "📄"
            self.lb.insert("end", f"≡  {icon} {a.file_name}  ·  {format_size(a.file_size)}")
        if select is not None:
            self.lb.selection_set(select)

    def _drag_start(self, event):
        idx = self.lb.nearest(event.y)
        if 0 <= idx < len(self.form.attachments):
            self._drag_key = self.form.attachments[idx].oss_key

    def _drag_motion(self, event):
        if self._drag_key is None:
            return
        target = self.lb.nearest(event.y)
        keys = [a.oss_key for a in self.form.attachments]
        if target != keys.index(self._drag_key):
            self.form.move_attachment(self._drag_key, target)
            self._render_attachments(select=target)

    def _drag_end(self, event):
        self._drag_key = None

    def _add_files(self):
        paths = filedialog.askopenfilenames(
            parent=self, title="选择附件",
            initialdir=_default_initialdir(),
            filetypes=FILE_TYPES,
        )
        if not paths:
            return
        files = self.controller.backend.files
        notifier = self.controller.notifier
        self.upload_btn.configure(state="disabled")
        self.upload_status.configure(text=f"正在上传 {len(paths)} 个文件...")
        run_async(self, lambda: self.form.upload(paths, files, on_reject=notifier.error),
                  on_done=self._on_uploaded, on_error=self._on_upload_failed)

    def _on_uploaded(self, uploaded):
        self.upload_btn.configure(state="normal")
        self.upload_status.configure(text="")
        if uploaded:
            self.controller.notifier.success("上传成功")
        self._render_attachments()

    def _on_upload_failed(self, error):
        self.upload_btn.configure(state="normal")
        self.upload_status.configure(text="")

    def _remove_selected(self):
        sel = self.lb.curselection()
        if not sel:
            return
        index = sel[0]
        target = self.form.attachments[index]
        if not messagebox.askyesno("确认删除", f"确定删除附件 \"{target.file_name}\" 吗？", parent=self):
            return
        files = self.controller.backend.files
        run_async(self, lambda: self.form.remove_attachment(index, files, confirm=lambda a: True),
                  on_done=self._on_removed)

    def _on_removed(self, removed):
        if removed:
            self.controller.notifier.success("附件已删除")
        self._render_attachments()

    # ---------- submit ----------
    def _cancel(self):
        self.result = None
        self.destroy()

    def _save(self):
        self._sync_groups()
        self.form.title = self.title_var.get()
        self.form.tags_text = self.tags_var.get()
        self.form.case_record = self.record_text.get("1.0", "end-1c")
        self.form.risk_summary = self.risk_text.get("1.0", "end-1c")

        errors = self.form.validate()
        self.title_err.configure(text=errors.get("title", ""))
        self.record_err.configure(text=errors.get("case_record", ""))
        self._render_provisions()
        if errors:
            self._canvas.yview_moveto(0)
            return

        self.save_btn.configure(state="disabled", text="保存中...")
        cases = self.controller.backend.cases
        run_async(self, lambda: self.form.submit(cases), on_done=self._on_saved, on_error=self._on_failed)

    def _on_saved(self, saved):
        self.controller.notifier.success("案例更新成功" if self.form.is_edit else "案例创建成功")
        self.result = saved or True
        self.destroy()

    def _on_failed(self, error):
        self.save_btn.configure(state="normal", text="保存")
