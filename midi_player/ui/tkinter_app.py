"""Tkinter desktop UI for the MIDI player."""
from __future__ import annotations

import tkinter as tk
from tkinter import filedialog, ttk
from typing import TYPE_CHECKING, Any

from ..config import AppConfig
from ..constants import (
    APP_TITLE,
    CLEAR,
    CURRENT_SONG_CHANGE,
    ERROR_LEVEL,
    PLAYBACK_STATE_CHANGE,
    WARNING,
)
from ..events import DispatchQueue
from ..i18n import LocaleManager, MessageCatalog
from .common import (
    PLAYLIST_COMMANDS,
    TOGGLE_COMMANDS,
    TRANSPORT_COMMANDS,
    format_position,
    locale_choices,
    midi_file_types,
    playback_status_text,
    window_title,
)
from .desktop_types import DesktopApp

if TYPE_CHECKING:
    from ..application.commands import PlayerCommand, PlayerController
    from ..application.observable_player import ObservableMidiPlayer
    from ..application.playback_engine import PlaybackEngine


class TkinterMidiPlayerApp(DesktopApp):
    """Tkinter frame: transport controls, playlist table and command console."""

    def __init__(
        self,
        *,
        config: AppConfig,
        logger,
        player: ObservableMidiPlayer,
        controller: PlayerController,
        catalog: MessageCatalog,
        locale_manager: LocaleManager,
        engine: PlaybackEngine | None = None,
        dispatcher: DispatchQueue | None = None,
    ) -> None:
        self.title = APP_TITLE
        self.config = config
        self.logger = logger
        self.player = player
        self.controller = controller
        self.catalog = catalog
        self.locale_manager = locale_manager
        self.engine = engine
        self.dispatcher = dispatcher
        self.root: tk.Tk | None = None
        self.buttons: dict[str, ttk.Button] = {}
        self.toggle_buttons: dict[str, ttk.Checkbutton] = {}
        self.toggle_vars: dict[str, tk.BooleanVar] = {}
        self.playlist_tree: ttk.Treeview | None = None
        self.console_output: tk.Text | None = None
        self.console_entry: ttk.Entry | None = None
        self.locale_combo: ttk.Combobox | None = None
        self.volume_scale: ttk.Scale | None = None
        self.volume_label: ttk.Label | None = None
        self.console_frame: ttk.LabelFrame | None = None
        self.status_var: tk.StringVar | None = None
        self.position_var: tk.StringVar | None = None
        self.locale_var: tk.StringVar | None = None
        self.volume_var: tk.IntVar | None = None
        self.dispatch_job: str | None = None
        self.tick_job: str | None = None
        self._locale_by_display: dict[str, str] = {}
        self._mnemonic_bindings: list[str] = []
        self._listeners_bound = False

    def launch(self) -> None:
        self._ensure_root()
        assert self.root is not None
        self.root.mainloop()

    def build_for_test(self) -> tk.Tk:
        """Build root/widgets without entering mainloop (for tests)."""
        self._ensure_root()
        assert self.root is not None
        return self.root

    def _ensure_root(self) -> None:
        if self.root is not None:
            return
        root = tk.Tk()
        root.title(window_title(self.catalog))
        root.geometry("760x620")
        root.minsize(560, 420)
        self.root = root
        if self.dispatcher is not None:
            self.dispatcher.bind_current_thread()
        self._configure_theme()
        self._init_tk_variables()
        self._build_layout()
        self._bind_listeners()
        self.locale_changed()
        self._render_playlist()
        self._schedule_dispatch()
        self._schedule_tick()
        root.protocol("WM_DELETE_WINDOW", self._on_close)
        self.logger.debug("Tkinter UI wiring complete")

    def _configure_theme(self) -> None:
        assert self.root is not None
        style = ttk.Style(self.root)
        available = set(style.theme_names())
        for theme_name in ("clam", "alt", "default", "vista", "classic"):
            if theme_name in available:
                style.theme_use(theme_name)
                break
        bg = "#10141c"
        card_bg = "#161c27"
        text_primary = "#e6e8ef"
        text_muted = "#9aa3b2"
        accent = "#4f8cff"
        disabled = "#6f7888"
        self.ui_surface = card_bg
        self.select_color = accent
        self.root.configure(background=bg)
        style.configure(".", background=bg, foreground=text_primary, font=("Segoe UI", 10))
        style.configure("TFrame", background=card_bg)
        style.configure("TLabel", background=card_bg, foreground=text_primary)
        style.configure("Status.TLabel", background=bg, foreground=text_muted, font=("Segoe UI", 9))
        style.configure("TLabelframe", background=card_bg)
        style.configure("TLabelframe.Label", background=card_bg, foreground=text_primary)
        style.configure("TCheckbutton", background=card_bg, foreground=text_primary)
        style.configure("Transport.TButton", padding=(12, 6), font=("Segoe UI", 10, "bold"))
        style.map("TButton", foreground=[("disabled", disabled)])
        style.configure(
            "Treeview",
            background=card_bg,
            fieldbackground=card_bg,
            foreground=text_primary,
            rowheight=22,
        )
        style.map("Treeview", background=[("selected", accent)])

    def _init_tk_variables(self) -> None:
        self.status_var = tk.StringVar(value="")
        self.position_var = tk.StringVar(value="")
        self.locale_var = tk.StringVar(value="")
        self.volume_var = tk.IntVar(value=self.config.volume)
        for identifier in TOGGLE_COMMANDS:
            command = self.controller.get_command(identifier)
            selected = bool(command.selected) if command is not None else False
            self.toggle_vars[identifier] = tk.BooleanVar(value=selected)

    def _build_layout(self) -> None:
        assert self.root is not None
        root = self.root
        root.grid_columnconfigure(0, weight=1)
        root.grid_rowconfigure(1, weight=3)
        root.grid_rowconfigure(2, weight=2)

        controls = ttk.Frame(root, padding=8)
        controls.grid(row=0, column=0, sticky="ew")
        self._build_transport(controls)

        playlist_frame = ttk.Frame(root, padding=(8, 0, 8, 8))
        playlist_frame.grid(row=1, column=0, sticky="nsew")
        self._build_playlist(playlist_frame)

        self.console_frame = ttk.LabelFrame(root, padding=8)
        self.console_frame.grid(row=2, column=0, sticky="nsew", padx=8)
        self._build_console(self.console_frame)

        status = ttk.Frame(root, padding=(8, 4))
        status.grid(row=3, column=0, sticky="ew")
        status.grid_columnconfigure(0, weight=1)
        ttk.Label(status, textvariable=self.status_var, style="Status.TLabel").grid(
            row=0, column=0, sticky="w"
        )
        ttk.Label(status, textvariable=self.position_var, style="Status.TLabel").grid(
            row=0, column=1, sticky="e"
        )

    def _build_transport(self, parent: ttk.Frame) -> None:
        for column, identifier in enumerate(TRANSPORT_COMMANDS):
            self.buttons[identifier] = self._command_button(
                parent, identifier, style="Transport.TButton"
            )
            self.buttons[identifier].grid(row=0, column=column, padx=(0, 6))
        offset = len(TRANSPORT_COMMANDS)
        for index, identifier in enumerate(TOGGLE_COMMANDS):
            variable = self.toggle_vars[identifier]
            check = ttk.Checkbutton(
                parent,
                variable=variable,
                command=lambda ident=identifier, var=variable: self._on_toggle(ident, var),
            )
            check.grid(row=0, column=offset + index, padx=(6, 0))
            self.toggle_buttons[identifier] = check
        parent.grid_columnconfigure(offset + len(TOGGLE_COMMANDS), weight=1)

        self.volume_label = ttk.Label(parent)
        self.volume_label.grid(row=0, column=offset + len(TOGGLE_COMMANDS) + 1, padx=(6, 4))
        self.volume_scale = ttk.Scale(
            parent,
            from_=0,
            to=100,
            orient=tk.HORIZONTAL,
            length=110,
            variable=self.volume_var,
            command=lambda _value: self._on_volume_change(),
        )
        self.volume_scale.grid(row=0, column=offset + len(TOGGLE_COMMANDS) + 2)

        self.locale_combo = ttk.Combobox(
            parent, textvariable=self.locale_var, state="readonly", width=22
        )
        self.locale_combo.grid(row=0, column=offset + len(TOGGLE_COMMANDS) + 3, padx=(8, 0))
        self.locale_combo.bind("<<ComboboxSelected>>", lambda _event: self._on_locale_selected())

    def _command_button(self, parent: tk.Widget, identifier: str, **kwargs) -> ttk.Button:
        return ttk.Button(
            parent,
            command=lambda ident=identifier: self._on_command_button(ident),
            **kwargs,
        )

    def _build_playlist(self, parent: ttk.Frame) -> None:
        parent.grid_columnconfigure(0, weight=1)
        parent.grid_rowconfigure(0, weight=1)
        tree = ttk.Treeview(parent, columns=("song",), show="headings", selectmode="extended")
        tree.column("song", anchor="w", stretch=True)
        tree.tag_configure("current", font=("Segoe UI", 10, "bold"))
        y_scroll = ttk.Scrollbar(parent, orient=tk.VERTICAL, command=tree.yview)
        tree.configure(yscrollcommand=y_scroll.set)
        tree.grid(row=0, column=0, sticky="nsew")
        y_scroll.grid(row=0, column=1, sticky="ns")
        tree.bind("<Double-1>", self._on_row_double_click)
        tree.bind("<Delete>", lambda _event: self._on_remove_selected())
        tree.bind("<Alt-Up>", lambda _event: self._on_move_selection(-1))
        tree.bind("<Alt-Down>", lambda _event: self._on_move_selection(1))
        self.playlist_tree = tree

        actions = ttk.Frame(parent)
        actions.grid(row=1, column=0, columnspan=2, sticky="ew", pady=(6, 0))
        for column, identifier in enumerate(PLAYLIST_COMMANDS):
            self.buttons[identifier] = self._command_button(actions, identifier)
            self.buttons[identifier].grid(row=0, column=column, padx=(0, 6))

    def _build_console(self, parent: ttk.LabelFrame) -> None:
        parent.grid_columnconfigure(0, weight=1)
        parent.grid_rowconfigure(0, weight=1)
        output = tk.Text(parent, height=8, wrap=tk.WORD, font=("Courier New", 10), relief="flat")
        output.configure(
            background=self.ui_surface,
            foreground="#e6e8ef",
            insertbackground="#e6e8ef",
            selectbackground=self.select_color,
            state=tk.DISABLED,
        )
        output.tag_configure(WARNING, foreground="#f0c674")
        output.tag_configure(ERROR_LEVEL, foreground="#ff6b6b")
        y_scroll = ttk.Scrollbar(parent, orient=tk.VERTICAL, command=output.yview)
        output.configure(yscrollcommand=y_scroll.set)
        output.grid(row=0, column=0, sticky="nsew")
        y_scroll.grid(row=0, column=1, sticky="ns")
        entry = ttk.Entry(parent)
        entry.grid(row=1, column=0, columnspan=2, sticky="ew", pady=(6, 0))
        entry.bind("<Return>", self._on_console_submit)
        self.console_output = output
        self.console_entry = entry

    # Listeners

    def _bind_listeners(self) -> None:
        if self._listeners_bound:
            return
        self.player.add_table_model_listener(self._on_table_changed)
        self.player.add_error_listener(self._on_player_error)
        self.player.add_property_change_listener(self._on_property_change)
        self.controller.add_output_listener(self._on_console_output)
        self.controller.add_exit_listener(self._on_exit_requested)
        self.locale_manager.add_listener(self)
        for command in self.controller.commands():
            command.listeners.subscribe(self._on_command_changed)
        self._listeners_bound = True

    def _unbind_listeners(self) -> None:
        if not self._listeners_bound:
            return
        self.player.remove_table_model_listener(self._on_table_changed)
        self.player.remove_error_listener(self._on_player_error)
        self.player.remove_property_change_listener(self._on_property_change)
        self.controller.remove_output_listener(self._on_console_output)
        self.controller.remove_exit_listener(self._on_exit_requested)
        self.locale_manager.remove_listener(self)
        for command in self.controller.commands():
            command.listeners.unsubscribe(self._on_command_changed)
        self._listeners_bound = False

    def locale_changed(self, event=None) -> None:
        if self.root is None:
            return
        self.root.title(window_title(self.catalog))
        for command in self.controller.commands():
            self._on_command_changed(command)
        self._refresh_heading()
        if self.console_frame is not None:
            self.console_frame.configure(
                text=self.catalog.get_message("midiplayer.frame.console.title", default="Console")
            )
        if self.volume_label is not None:
            self.volume_label.configure(
                text=self.catalog.get_message("midiplayer.frame.volume", default="Volume")
            )
        choices = locale_choices(self.catalog, self.locale_manager.available_locales)
        self._locale_by_display = {display: locale for display, locale in choices}
        if self.locale_combo is not None and self.locale_var is not None:
            self.locale_combo.configure(values=[display for display, _ in choices])
            for display, locale in choices:
                if locale == self.locale_manager.locale:
                    self.locale_var.set(display)
        self._rebind_mnemonics()
        self._refresh_status()

    def _refresh_heading(self) -> None:
        if self.playlist_tree is not None:
            self.playlist_tree.heading("song", text=self.player.column_name(0))

    def _on_command_changed(self, command: PlayerCommand) -> None:
        identifier = command.identifier
        text, underline = command.text_and_underline()
        widget = self.buttons.get(identifier) or self.toggle_buttons.get(identifier)
        if widget is not None:
            widget.configure(text=text, underline=underline)
            widget.state(["!disabled"] if command.enabled else ["disabled"])
        variable = self.toggle_vars.get(identifier)
        if variable is not None and command.selected is not None:
            variable.set(bool(command.selected))

    def _rebind_mnemonics(self) -> None:
        assert self.root is not None
        for sequence in self._mnemonic_bindings:
            self.root.unbind(sequence)
        self._mnemonic_bindings = []
        for identifier in (*TRANSPORT_COMMANDS, *PLAYLIST_COMMANDS, *TOGGLE_COMMANDS):
            command = self.controller.get_command(identifier)
            if command is None:
                continue
            mnemonic = self.catalog.get_mnemonic(
                f"{command.message_prefix}.name", default=command.label_default
            )
            if not mnemonic or not mnemonic.isalnum():
                continue
            sequence = f"<Alt-KeyPress-{mnemonic.lower()}>"
            if sequence in self._mnemonic_bindings:
                continue
            self.root.bind(sequence, lambda _event, ident=identifier: self._on_mnemonic(ident))
            self._mnemonic_bindings.append(sequence)

    def _on_mnemonic(self, identifier: str) -> str:
        if identifier in TOGGLE_COMMANDS:
            variable = self.toggle_vars[identifier]
            variable.set(not variable.get())
            self._on_toggle(identifier, variable)
        else:
            self._on_command_button(identifier)
        return "break"

    def _on_table_changed(self, event) -> None:
        if event.is_header_change:
            self._refresh_heading()
            return
        self._render_playlist()

    def _on_property_change(self, event) -> None:
        if event.property_name in (PLAYBACK_STATE_CHANGE, CURRENT_SONG_CHANGE):
            self._refresh_status()

    def _on_player_error(self, message: str, exc: BaseException | None) -> None:
        if self.status_var is not None:
            self.status_var.set(message)
        self._append_console(message, ERROR_LEVEL)

    def _on_console_output(self, level: str, message: str) -> None:
        if level == CLEAR:
            self._clear_console()
            return
        self._append_console(message, level)

    def _on_exit_requested(self, code: int) -> None:
        self._on_close()

    # Rendering

    def _render_playlist(self) -> None:
        tree = self.playlist_tree
        if tree is None:
            return
        tree.delete(*tree.get_children())
        cursor = self.player.cursor
        for row in range(self.player.row_count()):
            tags = ("current",) if row == cursor else ()
            tree.insert("", tk.END, iid=str(row), values=(self.player.value_at(row, 0),), tags=tags)
        if cursor is not None:
            tree.see(str(cursor))

    def _refresh_status(self) -> None:
        if self.status_var is None:
            return
        track = self.player.current_track()
        self.status_var.set(
            playback_status_text(self.catalog, self.player.state, track.name if track else "")
        )

    def _append_console(self, message: str, level: str = "") -> None:
        output = self.console_output
        if output is None:
            return
        output.configure(state=tk.NORMAL)
        tags = (level,) if level else ()
        output.insert(tk.END, message + "\n", tags)
        output.see(tk.END)
        output.configure(state=tk.DISABLED)

    def _clear_console(self) -> None:
        if self.console_output is None:
            return
        self.console_output.configure(state=tk.NORMAL)
        self.console_output.delete("1.0", tk.END)
        self.console_output.configure(state=tk.DISABLED)

    # Actions

    def _run_command(self, identifier: str, *args: str) -> int:
        return self.controller.run_command((identifier, *args))

    def _on_command_button(self, identifier: str) -> None:
        if identifier == "loadMidiFile":
            self._on_add_files()
        elif identifier == "removeSong":
            self._on_remove_selected()
        else:
            self._run_command(identifier)

    def _on_toggle(self, identifier: str, variable: tk.BooleanVar) -> None:
        self._run_command(identifier, "on" if variable.get() else "off")

    def _on_add_files(self) -> None:
        paths = filedialog.askopenfilenames(
            parent=self.root,
            title=self.catalog.get_message(
                "midiplayer.frame.file_chooser.title", default="Add MIDI files"
            ),
            filetypes=midi_file_types(self.catalog),
        )
        if paths:
            self._run_command("loadMidiFile", *paths)

    def _selected_rows(self) -> list[int]:
        if self.playlist_tree is None:
            return []
        return sorted(int(item) for item in self.playlist_tree.selection())

    def _on_remove_selected(self) -> None:
        rows = self._selected_rows()
        if not rows:
            return
        self._run_command("removeSong", *(str(row + 1) for row in rows))

    def _on_row_double_click(self, event: tk.Event[Any]) -> None:
        assert self.playlist_tree is not None
        item = self.playlist_tree.identify_row(event.y)
        if not item:
            return
        self._run_command("playSong", str(int(item) + 1))

    def _on_move_selection(self, delta: int) -> str:
        rows = self._selected_rows()
        if not rows:
            return "break"
        start, end = rows[0], rows[-1]
        if delta < 0:
            to = start - 1
        else:
            to = end + 2
        if to < 0 or to > self.player.row_count():
            return "break"
        if self._run_command("moveSong", str(start + 1), str(end + 1), str(to + 1)) == 0:
            new_start = start + delta
            if self.playlist_tree is not None:
                self.playlist_tree.selection_set(
                    [str(row) for row in range(new_start, new_start + end - start + 1)]
                )
        return "break"

    def _on_console_submit(self, _event: tk.Event[Any] | None = None) -> str:
        assert self.console_entry is not None
        line = self.console_entry.get().strip()
        self.console_entry.delete(0, tk.END)
        if line:
            self._append_console(f"> {line}")
            self.controller.run_line(line)
        return "break"

    def _on_locale_selected(self) -> None:
        assert self.locale_var is not None
        locale = self._locale_by_display.get(self.locale_var.get())
        if locale is not None:
            self._run_command("locale", locale)

    def _on_volume_change(self) -> None:
        if self.volume_var is None or self.engine is None:
            return
        self.engine.set_volume(int(float(self.volume_var.get())))

    # Periodic jobs

    def _schedule_dispatch(self) -> None:
        if self.root is None:
            return
        if self.dispatcher is not None:
            self.dispatcher.drain()
        self.dispatch_job = self.root.after(self.config.dispatch_poll_ms, self._schedule_dispatch)

    def _schedule_tick(self) -> None:
        if self.root is None:
            return
        if self.engine is not None:
            self.engine.tick()
            current_ms, length_ms = self.engine.position_ms()
            if self.position_var is not None:
                self.position_var.set(format_position(current_ms, length_ms))
        self.tick_job = self.root.after(self.config.tick_interval_ms, self._schedule_tick)

    def _cancel_jobs(self) -> None:
        if self.root is None:
            return
        for job in (self.dispatch_job, self.tick_job):
            if job is not None:
                try:
                    self.root.after_cancel(job)
                except tk.TclError:
                    self.logger.debug("Timer already cancelled: %s", job)
        self.dispatch_job = None
        self.tick_job = None

    def _on_close(self) -> None:
        self._cancel_jobs()
        self._unbind_listeners()
        if self.engine is not None:
            self.engine.close()
        if self.root is not None:
            root = self.root
            self.root = None
            root.destroy()


def create_tkinter_app(
    *,
    config: AppConfig,
    logger,
    player: ObservableMidiPlayer,
    controller: PlayerController,
    catalog: MessageCatalog,
    locale_manager: LocaleManager,
    engine: PlaybackEngine | None = None,
    dispatcher: DispatchQueue | None = None,
) -> DesktopApp:
    """Create the Tkinter desktop app instance."""
    return TkinterMidiPlayerApp(
        config=config,
        logger=logger,
        player=player,
        controller=controller,
        catalog=catalog,
        locale_manager=locale_manager,
        engine=engine,
        dispatcher=dispatcher,
    )
