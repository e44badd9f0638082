# main.py
"""
Main GUI for the Digital Library (Tkinter + customtkinter).

Features:
- Login & registration (roles: Admin / Student)
- Admin dashboard: add/edit/delete books, delete users, reset passwords,
  issued history for everyone, totals + borrowed/returned chart
- Student dashboard: browse/search catalog, borrow, return (searchable picker
  over the student's borrowed books), personal history and chart
- History window with date-range filter and CSV/XLSX export
"""

import logging
import platform
import tkinter as tk
from datetime import datetime
from difflib import SequenceMatcher
from tkinter import ttk, messagebox, Toplevel, filedialog

import customtkinter as ctk

# charts
import matplotlib
matplotlib.use("TkAgg")
from matplotlib.figure import Figure
from matplotlib.backends.backend_tkagg import FigureCanvasTkAgg

import exporter
from database import LibraryDatabase
from models import Admin, ROLES, BORROWED, RETURNED
from settings import settings
from ui_helpers import store_call

logger = logging.getLogger(__name__)

# ---------------------------
# Theme
# ---------------------------
PALETTE = {
    "bg": "#f0f6ff",
    "panel": "#ffffff",
    "accent": "#164e78",  # library blue
    "accent2": "#0ea5e9",
    "muted": "#475569",
    "success": "#10b981",
    "warning": "#f59e0b",
    "danger": "#dc3545"
}

BOOK_COLUMNS = ("id", "title", "author", "avail", "total")
BOOK_HEADINGS = ("ID", "Title", "Author", "Avail", "Total")


def make_tree(parent, columns, headings, widths=None):
    tree = ttk.Treeview(parent, columns=columns, show="headings", selectmode="browse")
    for i, (col, head) in enumerate(zip(columns, headings)):
        tree.heading(col, text=head)
        tree.column(col, width=(widths[i] if widths else 120), anchor="w")
    vsb = ttk.Scrollbar(parent, orient="vertical", command=tree.yview)
    tree.configure(yscrollcommand=vsb.set)
    return tree, vsb


def clear_tree(tree):
    for r in tree.get_children():
        tree.delete(r)


def fill_books_tree(tree, books):
    clear_tree(tree)
    for b in books:
        tree.insert("", "end", values=(b.id, b.title, b.author, b.available_copies, b.total_copies))


def selected_values(tree):
    sel = tree.selection()
    if not sel:
        return None
    return tree.item(sel[0], "values")


def parse_day(text):
    text = text.strip()
    return datetime.strptime(text, "%Y-%m-%d").date() if text else None


# ---------------------------
# SearchableDropdown widget
# ---------------------------
class SearchableDropdown:
    """
    Modal, fuzzy-searching picker with keyboard navigation.

    Required:
      - parent: tk parent window
      - fetch_fn() -> list[dict]  (dict must include 'id' and 'name')
      - on_select(dict) callback

    Up/Down/Enter/Escape work from both the entry and the list.
    """
    def __init__(self, parent, fetch_fn, on_select, title="Select item"):
        self.parent = parent
        self.fetch_fn = fetch_fn
        self.on_select = on_select

        self.win = Toplevel(parent)
        self.win.title(title)
        self.win.geometry("480x340")
        self.win.resizable(False, False)
        self.win.grab_set()

        top = tk.Frame(self.win, bg=PALETTE["panel"])
        top.pack(fill="x", padx=12, pady=(12, 6))
        tk.Label(top, text=title, anchor="w", bg=PALETTE["panel"],
                 fg=PALETTE["accent"], font=("Helvetica", 12, "bold")).pack(fill="x")

        self.entry_var = tk.StringVar()
        self.entry = tk.Entry(top, textvariable=self.entry_var, font=("Segoe UI", 11))
        self.entry.pack(fill="x", pady=(6, 4))
        self.entry.focus_set()
        self.entry.bind("<KeyRelease>", self.on_key)
        self.entry.bind("<Down>", lambda e: self.move(1))
        self.entry.bind("<Up>", lambda e: self.move(-1))
        self.entry.bind("<Return>", lambda e: self.confirm_selection())
        self.entry.bind("<Escape>", lambda e: self.close())

        lb_frame = tk.Frame(self.win, bg=PALETTE["panel"])
        lb_frame.pack(fill="both", expand=True, padx=12, pady=(6, 12))
        self.listbox = tk.Listbox(lb_frame, activestyle="none", selectmode="browse", font=("Segoe UI", 10))
        self.listbox.pack(side="left", fill="both", expand=True)
        self.listbox.bind("<Double-Button-1>", lambda e: self.confirm_selection())
        self.listbox.bind("<Return>", lambda e: self.confirm_selection())
        self.listbox.bind("<Escape>", lambda e: self.close())
        scrollbar = tk.Scrollbar(lb_frame, orient="vertical", command=self.listbox.yview)
        scrollbar.pack(side="right", fill="y")
        self.listbox.config(yscrollcommand=scrollbar.set)

        btn_frame = tk.Frame(self.win, bg=PALETTE["panel"])
        btn_frame.pack(fill="x", padx=12, pady=(0, 12))
        tk.Button(btn_frame, text="Select", command=self.confirm_selection,
                  bg=PALETTE["accent"], fg="white").pack(side="left", padx=(0, 6))
        tk.Button(btn_frame, text="Cancel", command=self.close).pack(side="right", padx=(6, 0))

        self.rows = fetch_fn()
        self.results = []
        self.update_list("")

    def fuzzy_score(self, needle, haystack):
        return SequenceMatcher(None, needle.lower(), haystack.lower()).ratio()

    def format_label(self, r):
        return f"{r['id']} - {r['name']}"

    def update_list(self, txt):
        scored = []
        for r in self.rows:
            score = self.fuzzy_score(txt, f"{r['id']} {r['name']}") if txt else 0.5
            scored.append((score, r))
        if txt:
            scored.sort(key=lambda x: -x[0])

        self.results = [r for _, r in scored]
        self.listbox.delete(0, tk.END)
        for idx, (score, r) in enumerate(scored):
            self.listbox.insert(tk.END, self.format_label(r))
            fg = PALETTE["accent"] if score > 0.6 else PALETTE["muted"]
            self.listbox.itemconfig(idx, fg=fg)

        if self.results:
            self.listbox.selection_clear(0, tk.END)
            self.listbox.selection_set(0)
            self.listbox.activate(0)
            self.listbox.see(0)

    def on_key(self, event):
        if event.keysym in ("Up", "Down", "Return", "Escape"):
            return
        self.update_list(self.entry_var.get().strip())

    def move(self, delta):
        size = self.listbox.size()
        if size == 0:
            return
        cur = self.listbox.curselection()
        idx = cur[0] + delta if cur else 0
        idx = max(0, min(idx, size - 1))
        self.listbox.selection_clear(0, tk.END)
        self.listbox.selection_set(idx)
        self.listbox.activate(idx)
        self.listbox.see(idx)

    def confirm_selection(self):
        sel = self.listbox.curselection()
        if not sel:
            messagebox.showwarning("Select", "Please select an item.", parent=self.win)
            return
        selected = self.results[sel[0]]
        try:
            self.on_select(selected)
        finally:
            self.close()

    def close(self):
        self.win.grab_release()
        self.win.destroy()


# ---------------------------
# Small form dialog
# ---------------------------
class FormDialog:
    """
    Modal form. `fields` is a list of (label, key, secret) tuples; `on_submit(values)`
    returns True to close the dialog.
    """
    def __init__(self, parent, title, fields, on_submit, submit_text="OK"):
        self.on_submit = on_submit
        self.win = Toplevel(parent)
        self.win.title(title)
        self.win.resizable(False, False)
        self.win.grab_set()

        ctk.CTkLabel(self.win, text=title, font=("Arial", 16, "bold")).pack(pady=(12, 6))
        frm = ctk.CTkFrame(self.win)
        frm.pack(padx=12, pady=6, fill="x")
        self.vars = {}
        for row, (label, key, secret) in enumerate(fields):
            ctk.CTkLabel(frm, text=label).grid(row=row, column=0, sticky="w", padx=6, pady=6)
            var = ctk.StringVar()
            ctk.CTkEntry(frm, textvariable=var, show="*" if secret else "").grid(row=row, column=1, padx=6, pady=6)
            self.vars[key] = var

        btns = ctk.CTkFrame(self.win)
        btns.pack(fill="x", padx=12, pady=(6, 12))
        ctk.CTkButton(btns, text=submit_text, command=self.submit).pack(side="left", padx=6)
        ctk.CTkButton(btns, text="Cancel", command=self.close).pack(side="right", padx=6)

    def submit(self):
        values = {k: v.get() for k, v in self.vars.items()}
        if self.on_submit(values):
            self.close()

    def close(self):
        self.win.grab_release()
        self.win.destroy()


# ---------------------------
# Login Window
# ---------------------------
class LoginWindow:
    def __init__(self, root, db, on_success):
        self.root = root
        self.db = db
        self.on_success = on_success
        self.win = Toplevel(root)
        self.win.title("Digital Library - Login")
        self.win.geometry("400x280")
        self.win.resizable(False, False)
        self.win.grab_set()
        self.win.protocol("WM_DELETE_WINDOW", self.on_close)

        ctk.CTkLabel(self.win, text="Digital Library", font=("Arial", 20, "bold"),
                     text_color=PALETTE["accent"]).pack(pady=(14, 8))

        frm = ctk.CTkFrame(self.win)
        frm.pack(padx=12, pady=6, fill="x")
        ctk.CTkLabel(frm, text="Username").grid(row=0, column=0, sticky="w", padx=6, pady=6)
        self.user_var = ctk.StringVar()
        user_entry = ctk.CTkEntry(frm, textvariable=self.user_var)
        user_entry.grid(row=0, column=1, padx=6, pady=6)
        ctk.CTkLabel(frm, text="Password").grid(row=1, column=0, sticky="w", padx=6, pady=6)
        self.pw_var = ctk.StringVar()
        pw_entry = ctk.CTkEntry(frm, textvariable=self.pw_var, show="*")
        pw_entry.grid(row=1, column=1, padx=6, pady=6)
        pw_entry.bind("<Return>", lambda e: self.try_login())

        btns = ctk.CTkFrame(self.win)
        btns.pack(fill="x", padx=12, pady=(6, 8))
        ctk.CTkButton(btns, text="Login", command=self.try_login).pack(side="left", padx=6)
        ctk.CTkButton(btns, text="Register", command=lambda: RegisterDialog(self.win, self.db)).pack(side="left", padx=6)
        ctk.CTkButton(btns, text="Exit", fg_color=PALETTE["danger"], command=self.on_close).pack(side="right", padx=6)

        ctk.CTkLabel(self.win, text="Admin: admin/admin  -  Demo: student1/pass",
                     font=("Arial", 10, "italic")).pack(pady=(0, 6))
        user_entry.focus_set()

    def try_login(self):
        username = self.user_var.get().strip()
        password = self.pw_var.get()
        if not username or not password:
            messagebox.showwarning("Input", "Enter username and password.", parent=self.win)
            return
        user = self.db.verify_user(username, password)
        if not user:
            logger.info("failed login for '%s'", username)
            messagebox.showerror("Login failed", "Invalid credentials!", parent=self.win)
            return
        logger.info("'%s' logged in as %s", username, user.role)
        self.win.grab_release()
        self.win.destroy()
        self.on_success(user)

    def on_close(self):
        self.win.destroy()
        self.root.quit()


class RegisterDialog:
    def __init__(self, parent, db):
        self.db = db
        self.win = Toplevel(parent)
        self.win.title("Register User")
        self.win.resizable(False, False)
        self.win.grab_set()

        ctk.CTkLabel(self.win, text="Register New User", font=("Arial", 18, "bold"),
                     text_color=PALETTE["accent"]).pack(pady=(12, 6))
        frm = ctk.CTkFrame(self.win)
        frm.pack(padx=12, pady=6, fill="x")
        self.name_var = ctk.StringVar(); self.user_var = ctk.StringVar(); self.pw_var = ctk.StringVar()
        self.role_var = ctk.StringVar(value=ROLES[0])
        ctk.CTkLabel(frm, text="Full Name").grid(row=0, column=0, sticky="w", padx=6, pady=6)
        ctk.CTkEntry(frm, textvariable=self.name_var).grid(row=0, column=1, padx=6, pady=6)
        ctk.CTkLabel(frm, text="Username").grid(row=1, column=0, sticky="w", padx=6, pady=6)
        ctk.CTkEntry(frm, textvariable=self.user_var).grid(row=1, column=1, padx=6, pady=6)
        ctk.CTkLabel(frm, text="Password").grid(row=2, column=0, sticky="w", padx=6, pady=6)
        ctk.CTkEntry(frm, textvariable=self.pw_var, show="*").grid(row=2, column=1, padx=6, pady=6)
        ctk.CTkLabel(frm, text="Role").grid(row=3, column=0, sticky="w", padx=6, pady=6)
        ctk.CTkOptionMenu(frm, values=list(ROLES), variable=self.role_var).grid(row=3, column=1, padx=6, pady=6)

        ctk.CTkButton(self.win, text="Register", command=self.register).pack(pady=(6, 12))

    def register(self):
        res = store_call(self.db.register_user, self.user_var.get(), self.pw_var.get(), self.name_var.get(), self.role_var.get())
        if res["success"]:
            messagebox.showinfo("Registered", res["message"], parent=self.win)
            self.win.grab_release()
            self.win.destroy()
        else:
            messagebox.showwarning("Register", res["message"], parent=self.win)


# ---------------------------
# History Window
# ---------------------------
class HistoryWindow:
    def __init__(self, root, db, username=None):
        self.db = db
        self.username = username
        self.win = Toplevel(root)
        self.win.title("Borrowed History" if username else "Issued History")
        self.win.geometry("760x440")

        controls = ctk.CTkFrame(self.win); controls.pack(fill="x", padx=12, pady=6)
        ctk.CTkLabel(controls, text="From (YYYY-MM-DD)").grid(row=0, column=0, padx=6, pady=6)
        self.from_var = ctk.StringVar(); ctk.CTkEntry(controls, textvariable=self.from_var, width=110).grid(row=0, column=1, padx=6)
        ctk.CTkLabel(controls, text="To").grid(row=0, column=2, padx=6)
        self.to_var = ctk.StringVar(); ctk.CTkEntry(controls, textvariable=self.to_var, width=110).grid(row=0, column=3, padx=6)
        ctk.CTkButton(controls, text="Filter", width=70, command=self.load).grid(row=0, column=4, padx=6)
        ctk.CTkButton(controls, text="Export CSV", width=90, command=lambda: self.export("csv")).grid(row=0, column=5, padx=6)
        ctk.CTkButton(controls, text="Export XLSX", width=90, command=lambda: self.export("xlsx")).grid(row=0, column=6, padx=6)

        table = ctk.CTkFrame(self.win); table.pack(fill="both", expand=True, padx=12, pady=6)
        cols = ("username", "title", "action", "date")
        self.tree, vsb = make_tree(table, cols, exporter.HEADERS, widths=(120, 280, 90, 160))
        self.tree.pack(side="left", fill="both", expand=True); vsb.pack(side="right", fill="y")
        self.load()

    def rows(self):
        try:
            dfrom = parse_day(self.from_var.get()); dto = parse_day(self.to_var.get())
        except ValueError:
            messagebox.showerror("Invalid date", "Dates must be in YYYY-MM-DD format", parent=self.win)
            return None
        return exporter.filter_transactions(self.db.list_transactions(self.username), dfrom, dto)

    def load(self):
        rows = self.rows()
        if rows is None:
            return
        clear_tree(self.tree)
        for t in rows:
            self.tree.insert("", "end", values=(t.username, t.book_title, t.action, t.formatted_date(settings.date_format)))

    def export(self, fmt):
        rows = self.rows()
        if rows is None:
            return
        filename = filedialog.asksaveasfilename(parent=self.win, defaultextension=f".{fmt}",
                                                filetypes=[("CSV files", "*.csv")] if fmt == "csv" else [("Excel files", "*.xlsx")])
        if not filename:
            return
        export = exporter.export_csv if fmt == "csv" else exporter.export_xlsx
        res = store_call(export, filename, rows)
        if res["success"]:
            messagebox.showinfo("Exported", f"{res['result']} rows saved to {filename}", parent=self.win)
        else:
            messagebox.showerror("Export failed", res["message"], parent=self.win)


# ---------------------------
# Dashboards
# ---------------------------
class Dashboard:
    """Shared layout: sidebar with actions, main area with tables, chart at the bottom."""
    title = "Dashboard"

    def __init__(self, root, db, user, on_logout):
        self.root = root
        self.db = db
        self.user = user
        self.on_logout = on_logout
        self.root.title(f"{self.title} - {user.name}")
        self.root.geometry("1100x700")

        self.container = ctk.CTkFrame(self.root)
        self.container.pack(fill="both", expand=True)
        self.sidebar = ctk.CTkFrame(self.container, width=200)
        self.sidebar.pack(side="left", fill="y")
        self.main_area = ctk.CTkFrame(self.container)
        self.main_area.pack(side="right", fill="both", expand=True)

        ctk.CTkLabel(self.sidebar, text=self.title, font=("Helvetica", 18, "bold")).pack(pady=12)
        ctk.CTkButton(self.sidebar, text="Logout", fg_color=PALETTE["danger"], command=self.logout).pack(side="bottom", fill="x", padx=12, pady=12)
        ctk.CTkButton(self.sidebar, text="Change Password", command=self.change_password).pack(side="bottom", fill="x", padx=12, pady=6)

        self._build()
        self._build_chart()
        self.refresh_all()

    def sidebar_button(self, text, command):
        ctk.CTkButton(self.sidebar, text=text, command=command).pack(fill="x", padx=12, pady=6)

    def _build(self):
        raise NotImplementedError

    def _build_chart(self):
        chart_frame = ctk.CTkFrame(self.main_area, height=220)
        chart_frame.pack(fill="x", padx=12, pady=(0, 12))
        self.fig = Figure(figsize=(8, 2.2), dpi=100)
        self.ax = self.fig.add_subplot(111)
        self.canvas = FigureCanvasTkAgg(self.fig, master=chart_frame)
        self.canvas.get_tk_widget().pack(fill="both", expand=True)

    def draw_chart(self, counts, title):
        self.ax.clear()
        labels = [BORROWED, RETURNED]
        self.ax.barh(labels, [counts.get(l, 0) for l in labels], color=[PALETTE["accent"], PALETTE["accent2"]])
        self.ax.set_title(title)
        self.ax.grid(alpha=0.25)
        self.fig.tight_layout()
        self.canvas.draw()

    def refresh_all(self):
        raise NotImplementedError

    def change_password(self):
        def submit(values):
            if values["new"] != values["confirm"]:
                messagebox.showwarning("Mismatch", "New passwords do not match")
                return False
            res = store_call(self.db.change_user_password, self.user.username, values["current"], values["new"])
            if res["success"]:
                messagebox.showinfo("Changed", res["message"])
                return True
            messagebox.showerror("Error", res["message"])
            return False
        FormDialog(self.root, "Change Password",
                   [("Current", "current", True), ("New", "new", True), ("Confirm", "confirm", True)],
                   submit, submit_text="Change")

    def logout(self):
        if messagebox.askyesno("Confirm", "Logout?"):
            logger.info("'%s' logged out", self.user.username)
            self.container.destroy()
            self.on_logout()


class AdminDashboard(Dashboard):
    title = "Admin Dashboard"

    def _build(self):
        self.sidebar_button("Add Book", lambda: self.edit_book(None))
        self.sidebar_button("Edit Book", self.edit_selected_book)
        self.sidebar_button("Delete Book", self.delete_book_action)
        self.sidebar_button("Delete User", self.delete_user_action)
        self.sidebar_button("Reset Password", self.reset_password_action)
        self.sidebar_button("Issued History", lambda: HistoryWindow(self.root, self.db))
        self.sidebar_button("Refresh", self.refresh_all)
        self.sidebar_button("Save", self.save_action)

        top = ctk.CTkFrame(self.main_area); top.pack(fill="x", padx=12, pady=6)
        self.totals_lbl = ctk.CTkLabel(top, text="", text_color=PALETTE["muted"])
        self.totals_lbl.pack(side="left", padx=12)

        tables = ctk.CTkFrame(self.main_area); tables.pack(fill="both", expand=True, padx=12, pady=6)
        left = ctk.CTkFrame(tables); left.pack(side="left", fill="both", expand=True, padx=(0, 6))
        ctk.CTkLabel(left, text="Books", font=("Arial", 14, "bold")).pack(anchor="w", padx=6)
        self.books_tree, vsb = make_tree(left, BOOK_COLUMNS, BOOK_HEADINGS, widths=(60, 240, 160, 50, 50))
        self.books_tree.pack(side="left", fill="both", expand=True); vsb.pack(side="right", fill="y")
        self.books_tree.bind("<Double-1>", lambda e: self.edit_selected_book())

        right = ctk.CTkFrame(tables); right.pack(side="right", fill="both", padx=(6, 0))
        ctk.CTkLabel(right, text="Users", font=("Arial", 14, "bold")).pack(anchor="w", padx=6)
        self.users_tree, uvsb = make_tree(right, ("username", "name", "role"), ("Username", "Name", "Role"), widths=(110, 150, 80))
        self.users_tree.pack(side="left", fill="both", expand=True); uvsb.pack(side="right", fill="y")

    def refresh_all(self):
        fill_books_tree(self.books_tree, self.db.list_books())
        clear_tree(self.users_tree)
        for u in self.db.list_users():
            self.users_tree.insert("", "end", values=(u.username, u.name, u.role))
        totals = self.db.analytics_totals()
        self.totals_lbl.configure(text=f"Titles: {totals['books']}   Copies: {totals['copies']}   "
                                       f"On loan: {totals['on_loan']}   Users: {totals['users']}   "
                                       f"Transactions: {totals['transactions']}")
        self.draw_chart(self.db.action_counts(), "All transactions")

    def edit_selected_book(self):
        vals = selected_values(self.books_tree)
        if not vals:
            messagebox.showwarning("Select", "Select a book to edit.")
            return
        self.edit_book(self.db.get_book(vals[0]))

    def edit_book(self, book):
        win = Toplevel(self.root)
        win.title("Add Book" if book is None else "Edit Book")
        win.resizable(False, False)
        win.grab_set()
        form = ctk.CTkFrame(win); form.pack(fill="x", padx=12, pady=12)
        id_var = ctk.StringVar(value=book.id if book else "")
        title_var = ctk.StringVar(value=book.title if book else "")
        author_var = ctk.StringVar(value=book.author if book else "")
        copies_var = tk.IntVar(value=book.total_copies if book else 1)

        ctk.CTkLabel(form, text="ID").grid(row=0, column=0, sticky="w", padx=6, pady=6)
        ctk.CTkEntry(form, textvariable=id_var, state="disabled" if book else "normal").grid(row=0, column=1, padx=6, pady=6)
        ctk.CTkLabel(form, text="Title").grid(row=1, column=0, sticky="w", padx=6, pady=6)
        ctk.CTkEntry(form, textvariable=title_var, width=300).grid(row=1, column=1, padx=6, pady=6)
        ctk.CTkLabel(form, text="Author").grid(row=2, column=0, sticky="w", padx=6, pady=6)
        ctk.CTkEntry(form, textvariable=author_var, width=300).grid(row=2, column=1, padx=6, pady=6)
        ctk.CTkLabel(form, text="Copies").grid(row=3, column=0, sticky="w", padx=6, pady=6)
        tk.Spinbox(form, from_=1, to=1000, textvariable=copies_var, width=6).grid(row=3, column=1, sticky="w", padx=6, pady=6)

        def save():
            try:
                copies = copies_var.get()
            except tk.TclError:
                messagebox.showwarning("Input", "Copies must be a number.", parent=win)
                return
            if book is None:
                res = store_call(self.db.add_book, id_var.get(), title_var.get(), author_var.get(), copies, actor=self.user.username)
            else:
                res = store_call(self.db.update_book, book.id, title_var.get(), author_var.get(), copies, actor=self.user.username)
            if not res["success"]:
                messagebox.showwarning("Book", res["message"], parent=win)
                return
            win.grab_release(); win.destroy()
            self.refresh_all()

        btns = ctk.CTkFrame(win); btns.pack(fill="x", padx=12, pady=(0, 12))
        ctk.CTkButton(btns, text="Save", command=save).pack(side="left", padx=6)
        ctk.CTkButton(btns, text="Cancel", command=win.destroy).pack(side="right", padx=6)

    def delete_book_action(self):
        vals = selected_values(self.books_tree)
        if not vals:
            messagebox.showwarning("Select", "Select a book to delete.")
            return
        if messagebox.askyesno("Confirm", f"Delete {vals[0]}?"):
            res = store_call(self.db.delete_book, vals[0], actor=self.user.username)
            if not res["success"]:
                messagebox.showerror("Could not delete", res["message"])
            self.refresh_all()

    def delete_user_action(self):
        vals = selected_values(self.users_tree)
        if not vals:
            messagebox.showwarning("Select", "Select a user to delete.")
            return
        username = vals[0]
        if username == settings.reserved_admin:
            messagebox.showerror("Not allowed", "Cannot delete admin!")
            return
        if messagebox.askyesno("Confirm", f"Delete {username}?"):
            res = store_call(self.db.delete_user, username, actor=self.user.username)
            if not res["success"]:
                messagebox.showerror("Could not delete", res["message"])
            self.refresh_all()

    def reset_password_action(self):
        vals = selected_values(self.users_tree)
        def submit(values):
            res = store_call(self.db.admin_reset_password, self.user.username, values["username"].strip(), values["password"])
            if res["success"]:
                messagebox.showinfo("Reset", res["message"])
                return True
            messagebox.showerror("Error", res["message"])
            return False
        dialog = FormDialog(self.root, "Reset User Password",
                            [("Username", "username", False), ("New password", "password", True)],
                            submit, submit_text="Reset")
        if vals:
            dialog.vars["username"].set(vals[0])

    def save_action(self):
        res = store_call(self.db.save)
        if res["success"]:
            messagebox.showinfo("Saved", "Saved!")
        else:
            messagebox.showerror("Save failed", res["message"])


class StudentDashboard(Dashboard):
    title = "Student Portal"

    def _build(self):
        self.sidebar_button("Borrow", self.borrow_action)
        self.sidebar_button("Return", self.return_action)
        self.sidebar_button("Borrowed History", lambda: HistoryWindow(self.root, self.db, self.user.username))
        self.sidebar_button("Refresh", self.refresh_all)

        ctk.CTkLabel(self.main_area, text=f"Welcome, {self.user.name}", font=("Arial", 20, "bold")).pack(pady=8)
        bar = ctk.CTkFrame(self.main_area); bar.pack(fill="x", padx=12, pady=6)
        self.search_entry = ctk.CTkEntry(bar, placeholder_text="Search by ID/title/author")
        self.search_entry.pack(side="left", fill="x", expand=True, padx=(8, 6))
        self.search_entry.bind("<Return>", lambda e: self.on_search())
        ctk.CTkButton(bar, text="Search", command=self.on_search).pack(side="left", padx=6)

        tree_frame = ctk.CTkFrame(self.main_area); tree_frame.pack(fill="both", expand=True, padx=12, pady=6)
        self.books_tree, vsb = make_tree(tree_frame, BOOK_COLUMNS, BOOK_HEADINGS, widths=(60, 320, 200, 60, 60))
        self.books_tree.pack(side="left", fill="both", expand=True); vsb.pack(side="right", fill="y")
        self.books_tree.bind("<Double-1>", lambda e: self.borrow_action())
        # right-click context for borrow
        if platform.system() == "Darwin":
            self.books_tree.bind("<Button-2>", self.on_right_click)
        else:
            self.books_tree.bind("<Button-3>", self.on_right_click)

        self.borrowed_lbl = ctk.CTkLabel(self.main_area, text="", text_color=PALETTE["muted"])
        self.borrowed_lbl.pack(anchor="w", padx=18)

    def on_search(self):
        fill_books_tree(self.books_tree, self.db.search_books(self.search_entry.get()))

    def on_right_click(self, event):
        iid = self.books_tree.identify_row(event.y)
        if iid:
            self.books_tree.selection_set(iid)
            menu = tk.Menu(self.root, tearoff=0)
            menu.add_command(label="Borrow", command=self.borrow_action)
            try:
                menu.tk_popup(event.x_root, event.y_root)
            finally:
                menu.grab_release()

    def refresh_all(self):
        self.on_search()
        self.borrowed_lbl.configure(text=f"Currently borrowed: {len(self.db.borrowed_books(self.user.username))}")
        self.draw_chart(self.db.action_counts(self.user.username), "My transactions")

    def borrow_action(self):
        vals = selected_values(self.books_tree)
        if not vals:
            messagebox.showwarning("Select", "Select a book to borrow")
            return
        res = store_call(self.db.borrow_book, self.user.username, vals[0])
        if res["success"]:
            self.refresh_all()
            messagebox.showinfo("Borrowed", res["message"])
        else:
            messagebox.showwarning("Borrow", res["message"])

    def return_action(self):
        borrowed = self.db.borrowed_books(self.user.username)
        if not borrowed:
            messagebox.showinfo("Return", "You have no borrowed books.")
            return

        def on_select(row):
            res = store_call(self.db.return_book, self.user.username, row["id"])
            if res["success"]:
                self.refresh_all()
                messagebox.showinfo("Returned", res["message"])
            else:
                messagebox.showerror("Return", res["message"])

        SearchableDropdown(self.root, lambda: [{"id": bid, "name": title} for bid, title in borrowed],
                           on_select, title="Select a book to return")


# ---------------------------
# Application start
# ---------------------------
def main():
    logging.basicConfig(level=settings.log_level,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    ctk.set_appearance_mode(settings.appearance_mode)
    ctk.set_default_color_theme(settings.color_theme)

    db = LibraryDatabase()
    root = tk.Tk()
    root.withdraw()

    def show_login():
        root.withdraw()
        root.title("Digital Library")
        LoginWindow(root, db, on_login_success)

    def on_login_success(user):
        root.deiconify()
        if isinstance(user, Admin):
            AdminDashboard(root, db, user, show_login)
        else:
            StudentDashboard(root, db, user, show_login)

    show_login()
    root.mainloop()


if __name__ == "__main__":
    main()
