"""
Crash notice for standalone runs: a small Tk window with the error and a
"Copy Error" button. Must be called from the main thread.
"""

import traceback

from .constants import THEME
from .config import log


def to_detailed_string(exc):
    """Exception summary line followed by its full traceback."""
    return str(exc) + "\n" + "".join(
        traceback.format_exception(type(exc), exc, exc.__traceback__)
    )


def show_crash_notice(message, detail):
    """Blocks until the user closes the window."""
    # Loaded here so headless hosts never import Tk
    import tkinter as tk

    try:
        root = tk.Tk()
    except tk.TclError as e:
        # No display (headless / service)
        log.error("Cannot show crash notice: %s", e)
        return

    try:
        root.title("PaceMan Tracker: Crash")
        root.configure(bg=THEME["bg_card"])
        root.attributes("-topmost", True)
        root.resizable(False, False)

        header = tk.Frame(root, bg=THEME["error"], height=48)
        header.pack(fill="x")
        header.pack_propagate(False)
        tk.Label(
            header, text="⛔  PaceMan Tracker has crashed",
            font=("Segoe UI", 14, "bold"), fg="white", bg=THEME["error"],
        ).pack(expand=True)

        body = tk.Frame(root, bg=THEME["bg_card"], padx=24, pady=16)
        body.pack(fill="both", expand=True)

        tk.Label(
            body, text=message, font=("Segoe UI", 11),
            fg=THEME["text_primary"], bg=THEME["bg_card"],
            wraplength=520, justify="left",
        ).pack(fill="x", pady=(0, 12))

        details = tk.Text(body, height=12, width=72, font=("Consolas", 9),
                          fg=THEME["text_muted"], bg=THEME["bg_dark"], relief="flat")
        details.insert("1.0", detail)
        details.configure(state="disabled")
        details.pack(fill="both", expand=True, pady=(0, 12))

        buttons = tk.Frame(body, bg=THEME["bg_card"])
        buttons.pack()

        def copy_error():
            try:
                root.clipboard_clear()
                root.clipboard_append("Error during main loop: " + detail)
                root.update()
            except tk.TclError as e:
                log.error("Failed to copy error to clipboard: %s", e)

        tk.Button(
            buttons, text="Copy Error", font=("Segoe UI", 11, "bold"),
            bg=THEME["error"], fg="white", relief="flat", padx=18, pady=6,
            command=copy_error,
        ).pack(side="left", padx=6)
        tk.Button(
            buttons, text="OK", font=("Segoe UI", 11, "bold"),
            bg=THEME["primary"], fg="white", relief="flat", padx=18, pady=6,
            command=root.destroy,
        ).pack(side="left", padx=6)

        root.protocol("WM_DELETE_WINDOW", root.destroy)
        root.mainloop()
    except tk.TclError as e:
        log.error("Crash notice failed: %s", e)
