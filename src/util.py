import json
import os
from gi.repository import GLib
import logging

from config import AppConfig

logger = logging.getLogger(__name__)

CANDIDATE_SERVICE_SOCKET_NAME = 'candidate-service.sock'


def get_package_name():
    '''
    returns 'ibus-kotonoha'
    '''
    return 'ibus-kotonoha'


def get_version():
    return '0.1.0'


def get_prefix():
    '''
    It is usually /usr/local/
    '''
    return '/usr/local'


def get_localedir():
    return os.path.join(get_prefix(), 'share', 'locale')


def get_user_config_dir():
    '''
    Return the path to the config directory under $HOME.
    Typically, it would be $HOME/.config/ibus-kotonoha
    '''
    return os.path.join(GLib.get_user_config_dir(), get_package_name())


def get_config_path():
    return os.path.join(get_user_config_dir(), 'config.json')


def get_log_path():
    return os.path.join(get_user_config_dir(), get_package_name() + '.log')


def get_default_config_data():
    '''
    The built-in defaults, in the same shape as config.json
    '''
    return AppConfig().to_dict()


def get_config_data():
    '''
    Load config.json from $HOME/.config/ibus-kotonoha.
    When the file is not present (e.g., after initial installation), the
    built-in default config is written there first.

    Returns:
        tuple: (AppConfig, warnings_string) where warnings_string is empty if no warnings
    '''
    configfile_path = get_config_path()
    warnings = ''

    if not os.path.exists(configfile_path):
        warning_msg = f'config.json is not found under {get_user_config_dir()} . Writing the default config.json ..'
        logger.warning(warning_msg)
        warnings = warning_msg
        save_config_data(get_default_config_data())
        return AppConfig(), warnings

    try:
        with open(configfile_path, encoding='utf-8') as f:
            config_data = json.load(f)
    except (OSError, json.decoder.JSONDecodeError) as e:
        logger.error(f'Error loading the config.json under {get_user_config_dir()}')
        logger.error(e)
        logger.error('Using (but not writing) the default config ..')
        return AppConfig(), f'config.json could not be loaded: {e}'

    config, messages = AppConfig.from_dict(config_data)
    return config, '\n'.join(messages)


def save_config_data(config_data):
    '''
    Save config data to the user config directory.

    Args:
        config_data: AppConfig, or a dict in the config.json shape

    Returns:
        bool: True if save was successful, False otherwise
    '''
    if isinstance(config_data, AppConfig):
        config_data = config_data.to_dict()
    configfile_path = get_config_path()

    try:
        # Ensure the config directory exists
        os.makedirs(get_user_config_dir(), exist_ok=True)

        with open(configfile_path, 'w', encoding='utf-8') as f:
            json.dump(config_data, f, ensure_ascii=False, indent=2)

        logger.info(f'Configuration saved successfully to {configfile_path}')
        return True
    except OSError as e:
        logger.error(f'Error saving config.json to {configfile_path}')
        logger.error(e)
        return False


def get_config_mtime():
    '''
    Modification time of config.json, or None when it does not exist
    '''
    try:
        return os.path.getmtime(get_config_path())
    except OSError:
        return None


def get_candidate_service_socket_path(config):
    '''
    The socket configured in config.json, else
    $XDG_RUNTIME_DIR/ibus-kotonoha/candidate-service.sock
    '''
    if config.candidate_service_socket:
        return os.path.expanduser(config.candidate_service_socket)
    return os.path.join(GLib.get_user_runtime_dir(), get_package_name(), CANDIDATE_SERVICE_SOCKET_NAME)
