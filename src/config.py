#!/usr/bin/env python3
"""
config.py - Immutable configuration snapshot of the engine
エンジンの不変な設定スナップショット

================================================================================
OVERVIEW / 概要
================================================================================

The configuration is persisted as config.json under the user config
directory (see util.get_config_data()). This module only knows how to turn
the decoded JSON object into an AppConfig value and back; it does no file
I/O of its own.

設定はユーザー設定ディレクトリの config.json に保存される。このモジュールは
デコード済みのJSONオブジェクトと AppConfig 値の相互変換のみを担当する。

    {
      "logging_level": "WARNING",
      "candidate_service_socket": "",
      "shortcuts": {"ctrl_space_toggle": true, "alt_backquote_toggle": true},
      "general": {
        "punctuation_style": "touten_kuten",
        "symbol_style": "corner_bracket_middle_dot",
        "space_input": "always_half",
        "numpad_input": "always_half"
      },
      "character_width": {
        "symbol_fullwidth": {",": true, "#": false, ...},
        "groups": {"alphabet": "half", "number": "half", ...}
      },
      "romaji_table": {"rows": [{"input": "ka", "output": "か"}, ...]}
    }

Every value read from the file is validated; anything unexpected falls back
to its default and is reported as a warning instead of raising, so that a
broken config.json never takes the engine down.

================================================================================
"""

import dataclasses
import enum
import logging
import types

logger = logging.getLogger(__name__)

CONFIG_VERSION = '0.1.0'

NAME_TO_LOGGING_LEVEL = {
    'DEBUG': logging.DEBUG,
    'INFO': logging.INFO,
    'WARNING': logging.WARNING,
    'ERROR': logging.ERROR,
    'CRITICAL': logging.CRITICAL,
}


class WidthMode(enum.Enum):
    HALF = 'half'
    FULL = 'full'


class PunctuationStyle(enum.Enum):
    TOUTEN_KUTEN = 'touten_kuten'                                          # 、。
    FULLWIDTH_COMMA_FULLWIDTH_PERIOD = 'fullwidth_comma_fullwidth_period'  # ，．
    TOUTEN_FULLWIDTH_PERIOD = 'touten_fullwidth_period'                    # 、．
    FULLWIDTH_COMMA_KUTEN = 'fullwidth_comma_kuten'                        # ，。


class SymbolStyle(enum.Enum):
    CORNER_BRACKET_MIDDLE_DOT = 'corner_bracket_middle_dot'  # 「」・
    SQUARE_BRACKET_BACKSLASH = 'square_bracket_backslash'    # ［］＼
    CORNER_BRACKET_BACKSLASH = 'corner_bracket_backslash'    # 「」＼
    SQUARE_BRACKET_MIDDLE_DOT = 'square_bracket_middle_dot'  # ［］・


class SpaceInputMode(enum.Enum):
    ALWAYS_HALF = 'always_half'
    FOLLOW_INPUT_MODE = 'follow_input_mode'


class NumpadInputMode(enum.Enum):
    ALWAYS_HALF = 'always_half'
    FOLLOW_INPUT_MODE = 'follow_input_mode'
    DIRECT_INPUT = 'direct_input'


# Whether the legacy table renders a symbol in full-width when the user has
# not overridden it.
CHARACTER_WIDTH_SYMBOL_DEFAULTS = {
    '0': False, '1': False, '2': False, '3': False, '4': False,
    '5': False, '6': False, '7': False, '8': False, '9': False,
    '!': True, '"': True, '#': False, '$': False, '%': False,
    '&': False, "'": True, '(': True, ')': True, '*': True,
    '+': True, ',': True, '-': True, '.': True, '/': True,
    ':': True, ';': True, '<': True, '=': True, '>': True,
    '?': True, '@': False, '[': True, '\\': False, ']': True,
    '^': False, '_': False, '`': False, '{': True, '|': False,
    '}': True, '~': True,
}

# Tab-separated: input, output and the optional next_input.
DEFAULT_ROMAJI_TABLE = '''\
# input\toutput\tnext_input
a\tあ
i\tい
u\tう
e\tえ
o\tお
ka\tか
ki\tき
ku\tく
ke\tけ
ko\tこ
sa\tさ
si\tし
shi\tし
su\tす
se\tせ
so\tそ
ta\tた
ti\tち
chi\tち
tu\tつ
tsu\tつ
te\tて
to\tと
na\tな
ni\tに
nu\tぬ
ne\tね
no\tの
ha\tは
hi\tひ
hu\tふ
fu\tふ
he\tへ
ho\tほ
ma\tま
mi\tみ
mu\tむ
me\tめ
mo\tも
ya\tや
yu\tゆ
yo\tよ
ra\tら
ri\tり
ru\tる
re\tれ
ro\tろ
wa\tわ
wo\tを
nn\tん
n'\tん
ga\tが
gi\tぎ
gu\tぐ
ge\tげ
go\tご
za\tざ
zi\tじ
ji\tじ
zu\tず
ze\tぜ
zo\tぞ
da\tだ
di\tぢ
du\tづ
de\tで
do\tど
ba\tば
bi\tび
bu\tぶ
be\tべ
bo\tぼ
pa\tぱ
pi\tぴ
pu\tぷ
pe\tぺ
po\tぽ
kya\tきゃ
kyu\tきゅ
kyo\tきょ
sha\tしゃ
shu\tしゅ
sho\tしょ
cha\tちゃ
chu\tちゅ
cho\tちょ
nya\tにゃ
nyu\tにゅ
nyo\tにょ
hya\tひゃ
hyu\tひゅ
hyo\tひょ
rya\tりゃ
ryu\tりゅ
ryo\tりょ
ja\tじゃ
ju\tじゅ
jo\tじょ
xa\tぁ
xi\tぃ
xu\tぅ
xe\tぇ
xo\tぉ
xtu\tっ
xya\tゃ
xyu\tゅ
xyo\tょ
kk\tっ\tk
ss\tっ\ts
tt\tっ\tt
pp\tっ\tp
zh\t←
zj\t↓
zk\t↑
zl\t→
z/\t・
z.\t…
z,\t‥
z-\t〜
z[\t『
z]\t』
'''


@dataclasses.dataclass(frozen=True)
class RomajiRule:
    input: str
    output: str
    # Lookahead kept for the candidate service; the normalizer ignores it.
    next_input: str = ''


def parse_romaji_table(text):
    """
    Parse a tab-separated romaji table.

    Blank lines and lines starting with '#' are skipped, as are rows whose
    input or output is empty.

    Returns:
        tuple of RomajiRule, in file order
    """
    rules = []
    for line in text.splitlines():
        trimmed = line.strip()
        if not trimmed or trimmed.startswith('#'):
            continue
        parts = trimmed.split('\t')
        if len(parts) < 2:
            logger.warning(f'romaji table row without output skipped: {trimmed!r}')
            continue
        input_str = parts[0].strip()
        output_str = parts[1].strip()
        if not input_str or not output_str:
            continue
        next_input = parts[2].strip() if len(parts) > 2 else ''
        rules.append(RomajiRule(input_str, output_str, next_input))
    return tuple(rules)


def default_romaji_rules():
    return parse_romaji_table(DEFAULT_ROMAJI_TABLE)


@dataclasses.dataclass(frozen=True)
class GeneralConfig:
    punctuation_style: PunctuationStyle = PunctuationStyle.TOUTEN_KUTEN
    symbol_style: SymbolStyle = SymbolStyle.CORNER_BRACKET_MIDDLE_DOT
    space_input: SpaceInputMode = SpaceInputMode.ALWAYS_HALF
    numpad_input: NumpadInputMode = NumpadInputMode.ALWAYS_HALF


@dataclasses.dataclass(frozen=True)
class ShortcutConfig:
    ctrl_space_toggle: bool = True
    alt_backquote_toggle: bool = True


@dataclasses.dataclass(frozen=True)
class CharacterWidthGroups:
    alphabet: WidthMode = WidthMode.HALF
    number: WidthMode = WidthMode.HALF
    bracket: WidthMode = WidthMode.FULL
    comma_period: WidthMode = WidthMode.FULL
    middle_dot_corner_bracket: WidthMode = WidthMode.FULL
    quote: WidthMode = WidthMode.FULL
    colon_semicolon: WidthMode = WidthMode.FULL
    hash_group: WidthMode = WidthMode.HALF
    tilde: WidthMode = WidthMode.FULL
    math_symbol: WidthMode = WidthMode.FULL
    question_exclamation: WidthMode = WidthMode.FULL


def _default_symbol_fullwidth():
    return types.MappingProxyType(dict(CHARACTER_WIDTH_SYMBOL_DEFAULTS))


@dataclasses.dataclass(frozen=True)
class CharacterWidthConfig:
    # explicit per-symbol overrides; symbols missing here use the defaults
    symbol_fullwidth: types.MappingProxyType = dataclasses.field(default_factory=_default_symbol_fullwidth)
    groups: CharacterWidthGroups = dataclasses.field(default_factory=CharacterWidthGroups)

    def is_symbol_fullwidth(self, symbol):
        if symbol in self.symbol_fullwidth:
            return self.symbol_fullwidth[symbol]
        return CHARACTER_WIDTH_SYMBOL_DEFAULTS.get(symbol, False)


@dataclasses.dataclass(frozen=True)
class AppConfig:
    version: str = CONFIG_VERSION
    logging_level: str = 'WARNING'
    # empty means util.get_candidate_service_socket_path() picks the default
    candidate_service_socket: str = ''
    shortcuts: ShortcutConfig = dataclasses.field(default_factory=ShortcutConfig)
    general: GeneralConfig = dataclasses.field(default_factory=GeneralConfig)
    character_width: CharacterWidthConfig = dataclasses.field(default_factory=CharacterWidthConfig)
    romaji_rules: tuple = dataclasses.field(default_factory=default_romaji_rules)

    @classmethod
    def from_dict(cls, data):
        """
        Build a config snapshot from the decoded config.json object.

        Returns:
            tuple: (AppConfig, warnings) where warnings is a list of
                   human-readable strings, empty when the data was clean
        """
        warnings = []
        if not isinstance(data, dict):
            warnings.append(f'config root must be an object, got {type(data).__name__}; using defaults')
            _log_warnings(warnings)
            return cls(), warnings

        logging_level = data.get('logging_level', 'WARNING')
        if logging_level not in NAME_TO_LOGGING_LEVEL:
            warnings.append(f'Specified logging level {logging_level} is not recognized. Using the default WARNING level.')
            logging_level = 'WARNING'

        socket_path = data.get('candidate_service_socket', '')
        if not isinstance(socket_path, str):
            warnings.append('"candidate_service_socket" must be a string; using the default socket')
            socket_path = ''

        shortcuts_data = _section(data, 'shortcuts', warnings)
        shortcuts = ShortcutConfig(
            ctrl_space_toggle=_bool(shortcuts_data, 'ctrl_space_toggle', True, warnings),
            alt_backquote_toggle=_bool(shortcuts_data, 'alt_backquote_toggle', True, warnings),
        )

        general_data = _section(data, 'general', warnings)
        general = GeneralConfig(
            punctuation_style=_enum(general_data, 'punctuation_style', PunctuationStyle.TOUTEN_KUTEN, warnings),
            symbol_style=_enum(general_data, 'symbol_style', SymbolStyle.CORNER_BRACKET_MIDDLE_DOT, warnings),
            space_input=_enum(general_data, 'space_input', SpaceInputMode.ALWAYS_HALF, warnings),
            numpad_input=_enum(general_data, 'numpad_input', NumpadInputMode.ALWAYS_HALF, warnings),
        )

        width_data = _section(data, 'character_width', warnings)
        symbol_fullwidth = dict(CHARACTER_WIDTH_SYMBOL_DEFAULTS)
        overrides = width_data.get('symbol_fullwidth', {})
        if isinstance(overrides, dict):
            for symbol, is_fullwidth in overrides.items():
                if isinstance(is_fullwidth, bool):
                    symbol_fullwidth[symbol] = is_fullwidth
                else:
                    warnings.append(f'symbol_fullwidth["{symbol}"] must be true or false; using the default')
        else:
            warnings.append('"character_width.symbol_fullwidth" must be an object; using the defaults')
        groups_data = width_data.get('groups', {})
        if not isinstance(groups_data, dict):
            warnings.append('"character_width.groups" must be an object; using the defaults')
            groups_data = {}
        group_defaults = CharacterWidthGroups()
        groups = CharacterWidthGroups(**{
            field.name: _enum(groups_data, field.name, getattr(group_defaults, field.name), warnings)
            for field in dataclasses.fields(CharacterWidthGroups)
        })
        character_width = CharacterWidthConfig(
            symbol_fullwidth=types.MappingProxyType(symbol_fullwidth),
            groups=groups,
        )

        romaji_rules = _romaji_rules(data, warnings)

        config = cls(
            version=str(data.get('version', CONFIG_VERSION)),
            logging_level=logging_level,
            candidate_service_socket=socket_path,
            shortcuts=shortcuts,
            general=general,
            character_width=character_width,
            romaji_rules=romaji_rules,
        )
        _log_warnings(warnings)
        return config, warnings

    def to_dict(self):
        return {
            'version': self.version,
            'logging_level': self.logging_level,
            'candidate_service_socket': self.candidate_service_socket,
            'shortcuts': dataclasses.asdict(self.shortcuts),
            'general': {
                field.name: getattr(self.general, field.name).value
                for field in dataclasses.fields(GeneralConfig)
            },
            'character_width': {
                'symbol_fullwidth': dict(self.character_width.symbol_fullwidth),
                'groups': {
                    field.name: getattr(self.character_width.groups, field.name).value
                    for field in dataclasses.fields(CharacterWidthGroups)
                },
            },
            'romaji_table': {
                'rows': [dataclasses.asdict(rule) for rule in self.romaji_rules],
            },
        }


def _log_warnings(warnings):
    for warning in warnings:
        logger.warning(warning)


def _section(data, key, warnings):
    value = data.get(key, {})
    if not isinstance(value, dict):
        warnings.append(f'"{key}" must be an object; using the defaults')
        return {}
    return value


def _bool(section, key, default, warnings):
    value = section.get(key, default)
    if not isinstance(value, bool):
        warnings.append(f'"{key}" must be true or false; using {default}')
        return default
    return value


def _enum(section, key, default, warnings):
    value = section.get(key, default.value)
    try:
        return type(default)(value)
    except ValueError:
        warnings.append(f'"{key}" has unknown value {value!r}; using {default.value!r}')
        return default


def _romaji_rules(data, warnings):
    table = data.get('romaji_table')
    if table is None:
        return default_romaji_rules()
    rows = table.get('rows') if isinstance(table, dict) else None
    if not isinstance(rows, list):
        warnings.append('"romaji_table.rows" must be a list; using the built-in romaji table')
        return default_romaji_rules()
    rules = []
    for row in rows:
        if not isinstance(row, dict) or not isinstance(row.get('input'), str) or not isinstance(row.get('output'), str):
            warnings.append(f'malformed romaji row skipped: {row!r}')
            continue
        next_input = row.get('next_input', '')
        rules.append(RomajiRule(row['input'], row['output'], next_input if isinstance(next_input, str) else ''))
    return tuple(rules)
