"""
main.py - Entry point for the Kotonoha IME engine
Kotonoha IMEエンジンのエントリーポイント

================================================================================
WHAT THIS FILE DOES / このファイルの役割
================================================================================

This is the program IBus starts when the user selects Kotonoha as the
input method. It registers EngineKotonoha with IBus and runs the main loop.

ユーザーがKotonohaを入力メソッドとして選択した時にIBusが起動するプログラム。
EngineKotonoha をIBusに登録し、メインループを実行する。

    IBus daemon starts this script
    IBusデーモンがこのスクリプトを起動
            ↓
    This script registers the Kotonoha engine with IBus
    このスクリプトがKotonohaエンジンをIBusに登録
            ↓
    EngineKotonoha (engine.py) receives every key event
    EngineKotonoha（engine.py）が全てのキーイベントを受け取る
            ↓
    SessionController (controller.py) turns keys into composition edits
    SessionController（controller.py）がキーを変換バッファの編集に変える

The kana-kanji conversion runs in a separate candidate service process,
reached over a Unix domain socket (candidate_service.py).

かな漢字変換は別プロセスの候補サービスで行われ、Unixドメインソケット経由で
接続する（candidate_service.py）。

================================================================================
"""

from engine import EngineKotonoha
import util

import getopt
import gettext
import os
import locale
import logging
import sys

import gi
gi.require_version('Gtk', '3.0')
gi.require_version('IBus', '1.0')
from gi.repository import GLib, GObject, IBus, Gtk


_ = lambda a : gettext.dgettext(util.get_package_name(), a)

ENGINE_NAME = 'kotonoha'
BUS_NAME = 'org.freedesktop.IBus.Kotonoha'


class IMApp:
    """
    Connects the Kotonoha engine to the IBus daemon.
    KotonohaエンジンをIBusデーモンに接続する。

    exec_by_ibus=True (normal operation):
        IBus started us, so we only request our D-Bus name.
        IBusが起動したので、D-Bus名を要求するだけ。

    exec_by_ibus=False (standalone, for development):
        We register an IBus.Component and IBus.EngineDesc ourselves, which
        allows testing without restarting the IBus daemon.
        IBus.Component と IBus.EngineDesc を自分で登録する。IBusデーモンを
        再起動せずにテストできる。
    """

    def __init__(self, exec_by_ibus: bool) -> None:
        if not isinstance(exec_by_ibus, bool):
            raise TypeError("The `exec_by_ibus` parameter must be a boolean value.")
        self.exec_by_ibus = exec_by_ibus

        # Initialize GTK (this is important for --ibus mode)
        Gtk.init(None)

        self._mainloop = GLib.MainLoop()
        self._bus = IBus.Bus()
        self._bus.connect("disconnected", self._bus_disconnected_cb)
        self._factory = IBus.Factory(self._bus)
        self._factory.add_engine(ENGINE_NAME, GObject.type_from_name(EngineKotonoha.__gtype_name__))
        if exec_by_ibus:
            self._bus.request_name(BUS_NAME, 0)
        else:
            self._component = IBus.Component(
                name=BUS_NAME,
                description="Kotonoha",
                version=util.get_version(),
                license="Apache-2.0",
                author="Kotonoha developers",
                homepage="https://github.com/kotonoha-ime/" + util.get_package_name(),
                textdomain=util.get_package_name())
            engine = IBus.EngineDesc(
                name=ENGINE_NAME,
                longname="Kotonoha",
                description="Kotonoha Japanese input method",
                language="ja",
                license="Apache-2.0",
                author="Kotonoha developers",
                icon=util.get_package_name(),
                layout="default")
            self._component.add_engine(engine)
            self._bus.register_component(self._component)
            self._bus.set_global_engine_async(ENGINE_NAME, -1, None, None, None)

    def run(self):
        self._mainloop.run()

    def _bus_disconnected_cb(self, bus=None):
        # IBus restart or logout
        self._mainloop.quit()


def print_help(v: int = 0) -> None:
    print("-i, --ibus             executed by IBus.")
    print("-h, --help             show this message.")
    print("-d, --daemonize        daemonize ibus")
    sys.exit(v)


def main():
    """
    Prepare ~/.config/ibus-kotonoha, set up logging, parse the options and
    run the engine.

    Options:
        -i, --ibus       started by the IBus daemon (normal operation)
        -d, --daemonize  fork to the background (for manual startup)
        -h, --help       show the help message and exit

    Files under ~/.config/ibus-kotonoha:
        config.json         user settings (written from the defaults on first run)
        ibus-kotonoha.log   debug log
    """
    os.umask(0o077)

    # Create user specific data directory
    user_configdir = util.get_user_config_dir()
    os.makedirs(user_configdir, 0o700, True)
    os.chmod(user_configdir, 0o700)

    # logging settings
    logfile_name = util.get_log_path()
    # DEBUG until the engine has loaded config.json; it applies "logging_level" afterwards
    logging.basicConfig(filename=logfile_name, level=logging.DEBUG, format='%(asctime)s %(levelname)-8s %(message)s', datefmt='%Y-%m-%d %H:%M:%S')
    logger = logging.getLogger()
    logger.info(f'main.py user_configdir: {user_configdir}')
    logger.info(f'main.py util.get_package_name(): {util.get_package_name()}')

    # write the default config.json if it does not exist
    if not os.path.exists(util.get_config_path()):
        util.save_config_data(util.get_default_config_data())

    exec_by_ibus = False
    daemonize = False

    shortopt = "ihd"
    longopt = ["ibus", "help", "daemonize"]

    try:
        opts, args = getopt.getopt(sys.argv[1:], shortopt, longopt)
    except getopt.GetoptError as err:
        logger.error(err)
        sys.exit(1)

    # getopt rather than argparse; IBus passes its own arguments
    for o, a in opts:
        if o in ("-h", "--help"):
            print_help(0)
        elif o in ("-d", "--daemonize"):
            daemonize = True
        elif o in ("-i", "--ibus"):
            exec_by_ibus = True
        else:
            sys.stderr.write("Unknown argument: %s\n" % o)
            print_help(1)
    logger.info(f'daemonize? : {daemonize}')
    logger.info(f'IBus exec? : {exec_by_ibus}')

    if daemonize:
        if os.fork():
            sys.exit()
    IMApp(exec_by_ibus).run()


if __name__ == "__main__":
    try:
        locale.bindtextdomain(util.get_package_name(), util.get_localedir())
    except AttributeError:
        # not available on every platform
        pass
    gettext.bindtextdomain(util.get_package_name(), util.get_localedir())
    main()
