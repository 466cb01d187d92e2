import os
import tempfile
import tkinter as tk
from tkinter import ttk, messagebox, filedialog

from PIL import ImageTk

from logic import attachments as att
from logic.export import export_case, open_with_system
from logic.image_utils import fit_preview, load_preview
from logic.tasks import run_async
from ui import theme
from ui.case_dialog import CaseDialog


class DetailFrame(tk.Frame):
    """
    Printable case record:
      • 一、案件记录 / 二、法律规定与风险 / 三、防控措施
      • attachments collapsed to three, image preview, download, delete
      • PDF export handed to the system viewer for printing
    """
    def __init__(self, parent, controller):
        super().__init__(parent, bg=theme.BG)
        self.controller = controller

        # --- state ---
        self.case = None
        self._case_id = None
        self._expanded = False
        self._preview_img = None

        # --- layout ---
        root = ttk.Frame(self, style="App.TFrame")
        root.pack(fill="both", expand=True)

        top = ttk.Frame(root, style="Toolbar.TFrame", padding=(16, 10))
        top.pack(fill="x")
        ttk.Button(top, text="← 返回列表", style="Ghost.TButton",
                   command=lambda: controller.navigate("cases")).pack(side="left")
        ttk.Button(top, text="🖨 打印/导出PDF", style="Ghost.TButton",
                   command=self.print_case).pack(side="right")
        self.btn_delete = ttk.Button(top, text="删除", style="Danger.TButton", command=self.delete_case)
        self.btn_delete.pack(side="right", padx=6)
        self.btn_edit = ttk.Button(top, text="编辑", style="Accent.TButton", command=self.edit_case)
        self.btn_edit.pack(side="right")

        card = ttk.Frame(root, style="Card.TFrame", padding=20)
        card.pack(fill="both", expand=True, padx=16, pady=(0, 12))

        self.tags_label = ttk.Label(card, text="", style="CardMuted.TLabel")
        self.tags_label.pack(anchor="w")
        self.title_label = ttk.Label(card, text="", style="Title.TLabel", wraplength=900)
        self.title_label.pack(anchor="w")
        self.meta_label = ttk.Label(card, text="", style="CardMuted.TLabel")
        self.meta_label.pack(anchor="w", pady=(0, 10))

        content = ttk.Frame(card, style="Card.TFrame")
        content.pack(fill="both", expand=True)

        # left: record, regulations, risk, attachments
        left = ttk.Frame(content, style="Card.TFrame")
        left.pack(side="left", fill="both", expand=True)
        self.body = tk.Text(left, wrap="word", bg=theme.CARD_BG, fg=theme.FG, relief="flat",
                            height=16, padx=4, pady=4, font=(theme.FONT, 11))
        self.body.tag_configure("h", foreground=theme.PRIMARY, font=(theme.FONT, 13, "bold"),
                                spacing1=10, spacing3=6)
        self.body.tag_configure("law", font=(theme.FONT, 11, "bold"), spacing1=6)
        self.body.tag_configure("risk", foreground=theme.DANGER, spacing1=8)
        body_scroll = ttk.Scrollbar(left, orient="vertical", command=self.body.yview)
        self.body.configure(yscrollcommand=body_scroll.set, state="disabled")
        body_scroll.pack(side="right", fill="y")
        self.body.pack(fill="both", expand=True)

        files = ttk.Frame(card, style="Card.TFrame")
        files.pack(fill="x", pady=(10, 0))
        head = ttk.Frame(files, style="Card.TFrame")
        head.pack(fill="x")
        ttk.Label(head, text="附件资料", style="Section.TLabel").pack(side="left")
        self.btn_batch = ttk.Button(head, text="删除选中", style="Danger.TButton",
                                    command=self.delete_selected)
        self.btn_batch.pack(side="right")
        self.btn_single = ttk.Button(head, text="删除", style="Ghost.TButton",
                                     command=self.delete_one)
        self.btn_single.pack(side="right", padx=6)
        ttk.Button(head, text="预览 / 下载", style="Ghost.TButton",
                   command=self.open_attachment).pack(side="right")

        self.files_tree = ttk.Treeview(files, columns=("name", "type", "size", "date"),
                                       show="headings", selectmode="extended", height=3)
        for col, text, width in (("name", "文件名", 380), ("type", "类型", 160),
                                 ("size", "大小", 90), ("date", "上传时间", 160)):
            self.files_tree.heading(col, text=text)
            self.files_tree.column(col, width=width, stretch=True)
        self.files_tree.pack(fill="x", pady=(6, 0))
        self.files_tree.bind("<Double-1>", lambda e: self.open_attachment())
        self.files_empty = ttk.Label(files, text="暂无附件", style="CardMuted.TLabel")
        self.btn_expand = ttk.Button(files, text="", style="Ghost.TButton", command=self.toggle_expand)

        # right: measures
        right = ttk.Frame(content, style="Card.TFrame", padding=(16, 0, 0, 0))
        right.pack(side="left", fill="y")
        ttk.Label(right, text="三、防控措施", style="Section.TLabel").pack(anchor="w")
        self.measures_box = ttk.Frame(right, style="Card.TFrame")
        self.measures_box.pack(fill="y", pady=(6, 0))

    # ---------- lifecycle ----------
    def on_show(self, route, case_id):
        self._case_id = case_id
        self._expanded = False
        admin = self.controller.session.is_admin
        for b in (self.btn_edit, self.btn_delete, self.btn_batch, self.btn_single):
            b.configure(state="normal" if admin else "disabled")
        self.title_label.configure(text="加载中...")
        self.fetch()

    def fetch(self):
        case_id = self._case_id
        run_async(self, lambda: self.controller.backend.cases.get(case_id),
                  on_done=self._render, on_error=lambda e: self.controller.navigate("cases"))

    # ---------- render ----------
    def _render(self, case):
        if case.id and case.id != self._case_id:
            return
        self.case = case
        self.tags_label.configure(text="  ".join(f"#{t}" for t in case.tags))
        self.title_label.configure(text=case.title)
        self.meta_label.configure(
            text=f"作者 {case.author or '-'}   ·   创建 {case.create_date[:10] or '-'}   ·   更新 {case.update_date[:10] or '-'}")

        self.body.configure(state="normal")
        self.body.delete("1.0", "end")
        self.body.insert("end", "一、案件记录\n", "h")
        self.body.insert("end", case.case_record + "\n")
        self.body.insert("end", "二、法律规定与风险\n", "h")
        for p in case.legal_provisions:
            self.body.insert("end", p.law_name + "\n", "law")
            self.body.insert("end", p.content + "\n")
        if case.risk_summary:
            self.body.insert("end", "⚠ " + case.risk_summary + "\n", "risk")
        self.body.configure(state="disabled")

        for w in self.measures_box.winfo_children():
            w.destroy()
        for i, m in enumerate(case.prevention_measures, start=1):
            ttk.Label(self.measures_box, text=f"{i}. {m}", style="Card.TLabel",
                      wraplength=280, justify="left").pack(anchor="w", pady=3)

        self._render_attachments()

    def _render_attachments(self):
        items = self.case.attachments if self.case else []
        self.files_tree.delete(*self.files_tree.get_children())
        for a in att.visible(items, self._expanded):
            self.files_tree.insert("", "end", iid=a.oss_key, values=(
                a.file_name, a.file_type, att.format_size(a.file_size), a.upload_date[:16].replace("T", " ")))
        self.files_tree.configure(height=max(1, min(len(att.visible(items, self._expanded)), 8)))

        if items:
            self.files_empty.pack_forget()
        else:
            self.files_empty.pack(anchor="w")
        if att.needs_collapse(items):
            hidden = len(items) - att.COLLAPSED_COUNT
            self.btn_expand.configure(text="收起" if self._expanded else f"展开全部 (+{hidden})")
            self.btn_expand.pack(anchor="w")
        else:
            self.btn_expand.pack_forget()

    def toggle_expand(self):
        self._expanded = not self._expanded
        self._render_attachments()

    # ---------- attachments ----------
    def _selected(self):
        keys = set(self.files_tree.selection())
        return [a for a in self.case.attachments if a.oss_key in keys] if self.case else []

    def open_attachment(self):
        sel = self._selected()
        if not sel:
            return
        a = sel[0]
        if a.is_image:
            self._preview(a)
        else:
            self._download(a)

    def _preview(self, a):
        api = self.controller.backend.api
        run_async(self, lambda: load_preview(api.fetch_bytes(a.url)),
                  on_done=lambda img: self._on_preview_loaded(a, img))

    def _on_preview_loaded(self, a, img):
        if img is None:
            self.controller.notifier.info(f"{a.file_name} 无法预览，请下载查看")
            self._download(a)
            return
        self._show_overlay(a, img)

    def _show_overlay(self, a, img):
        top = tk.Toplevel(self)
        top.title(a.file_name)
        top.configure(bg="black")
        top.transient(self.winfo_toplevel())
        sw, sh = self.winfo_screenwidth(), self.winfo_screenheight()
        shown = fit_preview(img, (int(sw * 0.8), int(sh * 0.8)))
        self._preview_img = ImageTk.PhotoImage(shown)
        label = tk.Label(top, image=self._preview_img, bg="black")
        label.pack(padx=8, pady=8)
        tk.Label(top, text=a.file_name, bg="black", fg="#e5e7eb").pack(pady=(0, 8))
        for w in (top, label):
            w.bind("<Button-1>", lambda e: top.destroy())
        top.bind("<Escape>", lambda e: top.destroy())

    def _download(self, a):
        ext = os.path.splitext(a.file_name)[1]
        dest = filedialog.asksaveasfilename(parent=self, initialfile=a.file_name, defaultextension=ext)
        if not dest:
            return
        api = self.controller.backend.api
        run_async(self, lambda: api.download(a.url, dest),
                  on_done=lambda _: self.controller.notifier.success(f"已下载 {a.file_name}"))

    def delete_one(self):
        sel = self._selected()
        if not sel:
            return
        a = sel[0]
        self._delete([a.oss_key], f"确定删除 {a.file_name} 吗？", "删除成功")

    def delete_selected(self):
        sel = self._selected()
        if not sel:
            return
        self._delete([a.oss_key for a in sel], f"确定删除选中的 {len(sel)} 个文件吗？", "批量删除成功")

    def _delete(self, keys, question, done_message):
        if not messagebox.askyesno("确认删除", question, parent=self):
            return
        backend = self.controller.backend
        case = self.case
        run_async(self, lambda: att.delete_from_case(case, keys, backend.files, backend.cases, lambda: True),
                  on_done=lambda _: (self.controller.notifier.success(done_message), self._render_attachments()))

    # ---------- case actions ----------
    def edit_case(self):
        if not self.case:
            return
        dlg = CaseDialog(self, self.controller, title="编辑案例", case=self.case)
        self.wait_window(dlg)
        if dlg.result:
            self.fetch()

    def delete_case(self):
        if not self.case:
            return
        if not messagebox.askyesno("确认删除", "确定删除此案例?", parent=self):
            return
        case_id = self.case.id
        run_async(self, lambda: self.controller.backend.cases.delete(case_id),
                  on_done=lambda _: (self.controller.notifier.success("已删除"),
                                     self.controller.navigate("cases")))

    def print_case(self):
        if not self.case:
            return
        fd, path = tempfile.mkstemp(prefix=f"case-{self.case.id}-", suffix=".pdf")
        os.close(fd)
        export_case(self.case, path)
        open_with_system(path)
