from __future__ import annotations

from tkinter import ttk


class LoginView:
    def __init__(self, parent, app):
        self.app = app
        self.frame = ttk.Frame(parent)

        box = ttk.LabelFrame(self.frame, text="Sign in")
        box.place(relx=0.5, rely=0.4, anchor="center")

        ttk.Label(box, text="Email").grid(row=0, column=0, sticky="w", padx=12, pady=(12, 4))
        self.email_e = ttk.Entry(box, width=34)
        self.email_e.grid(row=1, column=0, padx=12)

        ttk.Label(box, text="Password").grid(row=2, column=0, sticky="w", padx=12, pady=(10, 4))
        self.password_e = ttk.Entry(box, width=34, show="*")
        self.password_e.grid(row=3, column=0, padx=12)
        self.password_e.bind("<Return>", lambda _e: self.on_login())

        self.login_btn = ttk.Button(box, text="Sign in", style="Big.TButton", command=self.on_login)
        self.login_btn.grid(row=4, column=0, sticky="ew", padx=12, pady=12)

    def on_login(self):
        email = self.email_e.get().strip()
        password = self.password_e.get()
        self.login_btn.state(["disabled"])
        try:
            self.app.dashboard.login(email, password)
        except Exception as e:
            self.app.handle_error("Sign in", e, "Sign in failed.")
            # A failed first load still leaves a valid session behind.
            if not self.app.dashboard.c.auth.is_authenticated():
                return
        finally:
            self.login_btn.state(["!disabled"])

        self.password_e.delete(0, "end")
        self.app.on_logged_in()
