from __future__ import annotations

import math
import tkinter as tk
from tkinter import ttk


def parse_int(s: str, field: str) -> int:
    s = (s or "").strip()
    if s == "":
        raise ValueError(f"{field} is required.")
    try:
        v = float(s)
    except ValueError:
        raise ValueError(f"{field} must be an integer.")
    if not math.isfinite(v) or v != int(v):
        raise ValueError(f"{field} must be an integer.")
    return int(v)


def parse_float(s: str, field: str) -> float:
    s = (s or "").strip().replace(",", "")
    if s == "":
        raise ValueError(f"{field} is required.")
    try:
        v = float(s)
    except ValueError:
        raise ValueError(f"{field} must be a number.")
    # float() also accepts "inf" and "nan"
    if not math.isfinite(v):
        raise ValueError(f"{field} must be a number.")
    return v


def entry(parent, label: str, row: int, width: int = 18, **kw) -> ttk.Entry:
    ttk.Label(parent, text=label).grid(row=row, column=0, sticky="w", padx=8, pady=4)
    e = ttk.Entry(parent, width=width, **kw)
    e.grid(row=row, column=1, sticky="ew", padx=8, pady=4)
    parent.columnconfigure(1, weight=1)
    return e


def make_tree(parent, cols: tuple[str, ...], heads: dict[str, str], widths: dict[str, int], height: int = 14) -> ttk.Treeview:
    wrap = ttk.Frame(parent)
    wrap.pack(fill="both", expand=True, padx=8, pady=8)
    tree = ttk.Treeview(wrap, columns=cols, show="headings", height=height)
    for c in cols:
        tree.heading(c, text=heads[c])
        tree.column(c, width=widths[c], anchor="w")
    vsb = ttk.Scrollbar(wrap, orient="vertical", command=tree.yview)
    tree.configure(yscrollcommand=vsb.set)
    tree.grid(row=0, column=0, sticky="nsew")
    vsb.grid(row=0, column=1, sticky="ns")
    wrap.columnconfigure(0, weight=1)
    wrap.rowconfigure(0, weight=1)
    return tree


def clear_tree(tree: ttk.Treeview) -> None:
    for item in tree.get_children():
        tree.delete(item)


def clear_entries(*entries: ttk.Entry) -> None:
    for e in entries:
        e.delete(0, tk.END)
