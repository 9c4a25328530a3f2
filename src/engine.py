from candidate_service import CandidateServiceError, SocketCandidateService
from config import NAME_TO_LOGGING_LEVEL
from controller import SessionController
from executor import ActionBatchError
from input_mode import InputMode
from rendering import RenderingError, RenderingSink
from user_action import KeyboardStateError
import util

import logging

import gi
gi.require_version('IBus', '1.0')
gi.require_version('Gtk', '3.0')
from gi.repository import GLib, Gtk, IBus
# http://lazka.github.io/pgi-docs/IBus-1.0/index.html
# http://lazka.github.io/pgi-docs/GLib-2.0/index.html

logger = logging.getLogger(__name__)

PREVIEW_BACKGROUND_COLOR = 0xd1eaff

INPUT_MODE_PROP_KEYS = {
    InputMode.LATIN: 'InputMode.Alphanumeric',
    InputMode.KANA: 'InputMode.Hiragana',
}


class IBusKeyboardState:
    '''
    Resolves keyvals with the keymap IBus already applied to the event
    '''

    def to_unicode(self, keyval):
        c = IBus.keyval_to_unicode(keyval)
        if isinstance(c, int):
            c = chr(c) if c else ''
        if c == '\0':
            return ''
        return c


class IBusRenderingSink(RenderingSink):
    '''
    Shows the composition as IBus preedit text.

    The preedit is preview followed by suffix; the preview part gets a
    background color. end_composition() commits the text currently shown.
    '''

    def __init__(self, engine):
        self._engine = engine
        self._preview = ''
        self._suffix = ''

    def _call(self, name, *args):
        try:
            getattr(self._engine, name)(*args)
        except GLib.Error as e:
            raise RenderingError(f'{name} failed: {e}') from e

    def _update_preedit(self):
        text = self._preview + self._suffix
        ibus_text = IBus.Text.new_from_string(text)
        attrs = IBus.AttrList()
        if text:
            attrs.append(IBus.Attribute.new(IBus.AttrType.UNDERLINE, IBus.AttrUnderline.SINGLE, 0, len(text)))
        if self._preview and self._suffix:
            attrs.append(IBus.Attribute.new(IBus.AttrType.BACKGROUND, PREVIEW_BACKGROUND_COLOR, 0, len(self._preview)))
        ibus_text.set_attributes(attrs)
        # CLEAR: the engine commits on focus-out itself
        self._call('update_preedit_text_with_mode', ibus_text, len(self._preview), bool(text), IBus.PreeditFocusMode.CLEAR)

    def start_composition(self):
        self._preview = ''
        self._suffix = ''

    def end_composition(self):
        text = self._preview + self._suffix
        self._preview = ''
        self._suffix = ''
        self._update_preedit()
        if text:
            logger.debug(f'commit_text("{text}")')
            self._call('commit_text', IBus.Text.new_from_string(text))

    def set_text(self, preview, suffix):
        self._preview = preview
        self._suffix = suffix
        self._update_preedit()

    def update_caret_position(self):
        # the caret follows the preview; resending the preedit moves it
        self._update_preedit()

    def update_mode_indicator(self, mode):
        self._engine.update_input_mode_indicator(mode)

    def discard(self):
        '''Drop the preedit without committing it.'''
        self._preview = ''
        self._suffix = ''
        self._update_preedit()


class EngineKotonoha(IBus.Engine):
    '''
    http://lazka.github.io/pgi-docs/IBus-1.0/classes/Engine.html
    '''
    __gtype_name__ = 'EngineKotonoha'

    def __init__(self):
        super().__init__()
        self._config = None
        self._config_mtime = None
        self._logging_level = 'WARNING'
        self._load_configs()

        self._keyboard_state = IBusKeyboardState()
        self._sink = IBusRenderingSink(self)
        self._socket_path = util.get_candidate_service_socket_path(self._config)
        self._service = SocketCandidateService(self._socket_path)
        logger.info(f'candidate service socket: {self._socket_path}')
        self._controller = SessionController(self._service, self._sink, InputMode.KANA)

        self._init_props()
        self._about_dialog = None

    def do_focus_in(self):
        self.register_properties(self._prop_list)

    def do_focus_out(self):
        self._terminate()

    def do_reset(self):
        self._terminate()

    def do_disable(self):
        self._terminate()

    def do_process_key_event(self, keyval, keycode, state):
        if state & IBus.ModifierType.RELEASE_MASK:
            return False
        self._refresh_config()
        try:
            return self._controller.handle_key(keyval, state, self._config, self._keyboard_state)
        except KeyboardStateError as e:
            logger.error(f'keyval {keyval:#x} could not be classified: {e}')
            return False
        except ActionBatchError as e:
            logger.error(f'keyval {keyval:#x} dropped: {e}')
            self._recover()
            return True

    def _terminate(self):
        try:
            self._controller.terminate(self._config)
        except ActionBatchError as e:
            logger.error(f'terminating the composition failed: {e}')
            self._recover()

    def _recover(self):
        '''
        Start over after a failed batch: forget the composition and bring
        the preedit and the candidate window back to a blank state.
        '''
        self._controller.abandon()
        try:
            self._sink.discard()
        except RenderingError as e:
            logger.error(e)
        try:
            self._service.hide_window()
            self._service.clear_text()
        except CandidateServiceError as e:
            logger.error(f'candidate service is not reachable: {e}')

    #
    # configuration
    #

    def _load_configs(self):
        '''
        Load config.json. A broken file never stops the engine; the
        problems are logged and the defaults are used instead.
        '''
        # the warnings are already logged while the file is parsed
        self._config, _ = util.get_config_data()
        self._config_mtime = util.get_config_mtime()
        self._logging_level = self._load_logging_level(self._config)
        logger.debug('config.json loaded')

    def _refresh_config(self):
        # the config snapshot is renewed per key, but the file is only read when it changed
        if util.get_config_mtime() == self._config_mtime:
            return
        logger.info('config.json changed; reloading')
        self._load_configs()
        if util.get_candidate_service_socket_path(self._config) != self._socket_path:
            logger.warning('candidate_service_socket changed; restart the engine to use it')

    def _load_logging_level(self, config):
        '''
        This function sets the logging level
        which can be obtained from the config.json
        When the value is not present (or incorrect) in config.json,
        warning is used as default.
        '''
        level = config.logging_level
        if level not in NAME_TO_LOGGING_LEVEL:
            logger.warning(f'Specified logging level {level} is not recognized. Using the default WARNING level.')
            level = 'WARNING'
        logger.info(f'logging_level: {level}')
        logging.getLogger().setLevel(NAME_TO_LOGGING_LEVEL[level])
        return level

    #
    # input mode and properties
    #

    def _init_props(self):
        '''
        This function creates the GUI menu list (typically top-right corner).

        http://lazka.github.io/pgi-docs/IBus-1.0/classes/PropList.html
        http://lazka.github.io/pgi-docs/IBus-1.0/classes/Property.html
        '''
        logger.debug('_init_props()')
        mode = self._controller.mode
        self._prop_list = IBus.PropList()
        self._input_mode_prop = IBus.Property(
            key='InputMode',
            prop_type=IBus.PropType.MENU,
            symbol=IBus.Text.new_from_string(mode.label),
            label=IBus.Text.new_from_string(f"Input mode ({mode.label})"),
            icon=None,
            tooltip=None,
            sensitive=True,
            visible=True,
            state=IBus.PropState.UNCHECKED,
            sub_props=None)
        self._input_mode_prop.set_sub_props(self._init_input_mode_props(mode))
        self._prop_list.append(self._input_mode_prop)
        prop = IBus.Property(
            key='About',
            prop_type=IBus.PropType.NORMAL,
            label=IBus.Text.new_from_string("About Kotonoha..."),
            icon=None,
            tooltip=None,
            sensitive=True,
            visible=True,
            state=IBus.PropState.UNCHECKED,
            sub_props=None)
        self._prop_list.append(prop)

    def _init_input_mode_props(self, mode):
        '''
        The radio items of the input mode menu.
        This function is meant to be only called from _init_props()
        '''
        labels = {
            InputMode.LATIN: "Alphanumeric (A)",
            InputMode.KANA: "Hiragana (あ)",
        }
        props = IBus.PropList()
        self._mode_radio_props = {}
        for each_mode, label in labels.items():
            prop = IBus.Property(key=INPUT_MODE_PROP_KEYS[each_mode],
                                 prop_type=IBus.PropType.RADIO,
                                 label=IBus.Text.new_from_string(label),
                                 icon=None,
                                 tooltip=None,
                                 sensitive=True,
                                 visible=True,
                                 state=self._prop_state(each_mode == mode),
                                 sub_props=None)
            self._mode_radio_props[each_mode] = prop
            props.append(prop)
        return props

    @staticmethod
    def _prop_state(checked):
        return IBus.PropState.CHECKED if checked else IBus.PropState.UNCHECKED

    def set_mode(self, mode):
        '''
        Switch the input mode from outside the key handling (property menu).
        '''
        if self._controller.mode == mode:
            return False
        logger.debug(f'set_mode({mode.label})')
        try:
            self._controller.set_mode(mode, self._config)
        except ActionBatchError as e:
            logger.error(f'set_mode({mode.label}) failed: {e}')
            self._recover()
            return False
        return True

    def update_input_mode_indicator(self, mode):
        self._input_mode_prop.set_symbol(IBus.Text.new_from_string(mode.label))
        self._input_mode_prop.set_label(IBus.Text.new_from_string(f"Input mode ({mode.label})"))
        self.update_property(self._input_mode_prop)
        for each_mode, prop in self._mode_radio_props.items():
            prop.set_state(self._prop_state(each_mode == mode))
            self.update_property(prop)

    def do_property_activate(self, prop_name, state):
        logger.info(f'property_activate({prop_name}, {state})')
        if prop_name == 'About':
            if self._about_dialog:
                self._about_dialog.present()
                return
            dialog = Gtk.AboutDialog()
            dialog.set_program_name("Kotonoha")
            dialog.set_copyright("Copyright 2026 Kotonoha developers")
            dialog.set_authors(["Kotonoha developers"])
            dialog.set_logo_icon_name(util.get_package_name())
            dialog.set_default_icon_name(util.get_package_name())
            dialog.set_version(util.get_version())
            dialog.set_comments("config files location : " + util.get_user_config_dir().replace(GLib.get_home_dir(), '${HOME}'))
            # To close the dialog when "close" is clicked, e.g. on RPi,
            # we connect the "response" signal to about_response_callback
            dialog.connect("response", self.about_response_callback)
            self._about_dialog = dialog
            dialog.show()
        elif prop_name in INPUT_MODE_PROP_KEYS.values():
            if state == IBus.PropState.CHECKED:
                mode = {key: mode for mode, key in INPUT_MODE_PROP_KEYS.items()}[prop_name]
                self.set_mode(mode)

    def about_response_callback(self, dialog, response):
        dialog.destroy()
        self._about_dialog = None
