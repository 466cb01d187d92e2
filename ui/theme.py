from tkinter import ttk

PRIMARY = "#005bac"
PRIMARY_ACTIVE = "#1d6fc0"
BG = "#f1f5f9"        # slate-100
CARD_BG = "#ffffff"
FG = "#1e293b"        # slate-800
MUTED = "#64748b"     # slate-500
FIELD_BG = "#f8fafc"  # slate-50
BORDER = "#e2e8f0"    # slate-200
DANGER = "#ef4444"    # red-500
AMBER = "#b45309"
ROW_EVEN = "#ffffff"
ROW_ODD = "#f8fafc"

FONT = "Microsoft YaHei UI"


def apply(widget) -> ttk.Style:
    """Configure the shared ttk styles once per toplevel."""
    style = ttk.Style(widget)
    try:
        style.theme_use("clam")
    except Exception:
        pass

    style.configure("App.TFrame", background=BG)
    style.configure("Toolbar.TFrame", background=BG)
    style.configure("Card.TFrame", background=CARD_BG)
    style.configure("Nav.TFrame", background=PRIMARY)

    style.configure("H1.TLabel", background=BG, foreground=FG, font=(FONT, 18, "bold"))
    style.configure("Title.TLabel", background=CARD_BG, foreground=FG, font=(FONT, 20, "bold"))
    style.configure("Section.TLabel", background=CARD_BG, foreground=PRIMARY, font=(FONT, 12, "bold"))
    style.configure("Muted.TLabel", background=BG, foreground=MUTED)
    style.configure("Card.TLabel", background=CARD_BG, foreground=FG)
    style.configure("CardMuted.TLabel", background=CARD_BG, foreground=MUTED)
    style.configure("Field.TLabel", background=CARD_BG, foreground=FG, font=(FONT, 10, "bold"))
    style.configure("Error.TLabel", background=CARD_BG, foreground=DANGER, font=(FONT, 9))
    style.configure("Stat.TLabel", background=CARD_BG, foreground=FG, font=(FONT, 20, "bold"))
    style.configure("Nav.TLabel", background=PRIMARY, foreground="#ffffff", font=(FONT, 10, "bold"))

    style.configure("TEntry", fieldbackground=FIELD_BG, foreground=FG,
                    insertcolor=FG, bordercolor=BORDER, padding=6)
    style.map("TEntry", bordercolor=[("focus", PRIMARY), ("!focus", BORDER)])

    style.configure("Accent.TButton", background=PRIMARY, foreground="#ffffff",
                    padding=(14, 8), borderwidth=0)
    style.map("Accent.TButton",
              background=[("active", PRIMARY_ACTIVE), ("!active", PRIMARY)],
              foreground=[("disabled", "#cbd5e1"), ("!disabled", "#ffffff")])
    style.configure("Ghost.TButton", background=CARD_BG, foreground=MUTED,
                    padding=(12, 8), borderwidth=0)
    style.map("Ghost.TButton",
              background=[("active", FIELD_BG)],
              foreground=[("active", FG), ("!active", MUTED)])
    style.configure("Danger.TButton", background=DANGER, foreground="#ffffff",
                    padding=(12, 8), borderwidth=0)
    style.map("Danger.TButton", background=[("active", "#f87171"), ("!active", DANGER)])
    style.configure("Nav.TButton", background=PRIMARY, foreground="#ffffff",
                    padding=(12, 6), borderwidth=0)
    style.map("Nav.TButton", background=[("active", PRIMARY_ACTIVE), ("!active", PRIMARY)])

    style.configure("Treeview", background=CARD_BG, fieldbackground=CARD_BG, foreground=FG,
                    bordercolor=BORDER, rowheight=28)
    style.configure("Treeview.Heading", background=BG, foreground=FG, bordercolor=BORDER,
                    font=(FONT, 10, "bold"))
    return style
