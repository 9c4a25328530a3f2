#!/usr/bin/env python3
"""
character_width.py - Width and symbol normalization of typed characters
入力文字の全角・半角と記号の正規化

================================================================================
OVERVIEW / 概要
================================================================================

Before a typed character is sent to the candidate service it is normalized
according to the user's configuration. The decision is made per character
and follows a fixed precedence, highest first:

入力文字は候補サービスへ送られる前に、ユーザー設定に従って正規化される。
判定は1文字ずつ、以下の優先順位で行われる:

    1. key normalization       visually equivalent keys are folded to ASCII
       キーの正規化               見た目が同じキーをASCIIに統一
    2. romaji rule override    a single-character romaji rule for a symbol
       ローマ字ルール              wins outright (no width groups applied)
    3. basic style             punctuation style / symbol style for
       基本設定                    ,  .  [  ]  /  \
    4. legacy symbol table     ASCII symbol/digit -> one full-width glyph,
       従来の記号テーブル           gated by the per-symbol full-width flag
    5. width groups            the 11 groups force half-/full-width
       文字幅グループ

    Example / 例 (default configuration):

        ","  --(3)-->  "、"  --(5: comma_period=full)-->  "、"
        "#"  --(4: '#' is half by default)-->  "#"  --(5: hash=half)--> "#"
        "?"  --(4)-->  "？"  --(5: question_exclamation=full)-->  "？"

The original canonical key travels alongside the intermediate text into
step 5: the slash key belongs to the middle-dot family ("・"), while a
solidus glyph produced by the symbol style belongs to the math-symbol
family ("／").

元のキーはステップ5まで保持される。スラッシュキーは中点系（「・」）、
記号スタイルが生成したスラッシュ字形は数学記号系（「／」）として扱われる。

================================================================================
"""

import logging
import string

from config import PunctuationStyle, SymbolStyle, WidthMode

logger = logging.getLogger(__name__)

# Variants that different keyboard layouts produce for the same physical key.
KEY_NORMALIZATION = {
    'ˆ': '^',
    '＾': '^',
    '˜': '~',
    '‾': '~',
    '～': '~',
    '¥': '\\',
    '￥': '\\',
    '＼': '\\',
    '，': ',',
    '．': '.',
}

# Symbols for which a single-character romaji rule overrides every setting.
ROMAJI_PRIORITY_KEYS = frozenset([
    '!', '"', '#', '$', '%', '&', "'", '(', ')', '*', '+', ',', '-', '.', '/', ':',
    ';', '<', '=', '>', '?', '@', '[', '\\', ']', '^', '_', '`', '{', '|', '}', '~',
])

# The legacy table. Digits and alphabet are not part of it.
HALF_FULL_SYMBOLS = {
    '!': '！',
    '"': '”',
    '#': '＃',
    '$': '＄',
    '%': '％',
    '&': '＆',
    "'": '’',
    '(': '（',
    ')': '）',
    '*': '＊',
    '+': '＋',
    ',': '、',
    '-': 'ー',
    '.': '。',
    '/': '・',
    ':': '：',
    ';': '；',
    '<': '＜',
    '=': '＝',
    '>': '＞',
    '?': '？',
    '@': '＠',
    '[': '「',
    '\\': '￥',
    ']': '」',
    '^': '＾',
    '_': '＿',
    '`': '｀',
    '{': '｛',
    '|': '｜',
    '}': '｝',
    '~': '～',
}

HALF_FULL_DIGITS = {str(d): chr(ord('０') + d) for d in range(10)}

HALF_FULL_CONFIGURABLE = dict(HALF_FULL_SYMBOLS, **HALF_FULL_DIGITS)

FULL_HALF_SYMBOLS = {full: half for half, full in HALF_FULL_SYMBOLS.items()}

FULLWIDTH_OFFSET = 0xFEE0

HALF_FULL_ALPHABET = {c: chr(ord(c) + FULLWIDTH_OFFSET) for c in string.ascii_lowercase}

SLASH_FORMS = ('/', '／')
MIDDLE_DOT_FORMS = ('･', '・')

_PUNCTUATION_COMMA = {
    PunctuationStyle.TOUTEN_KUTEN: '、',
    PunctuationStyle.TOUTEN_FULLWIDTH_PERIOD: '、',
    PunctuationStyle.FULLWIDTH_COMMA_FULLWIDTH_PERIOD: '，',
    PunctuationStyle.FULLWIDTH_COMMA_KUTEN: '，',
}

_PUNCTUATION_PERIOD = {
    PunctuationStyle.TOUTEN_KUTEN: '。',
    PunctuationStyle.FULLWIDTH_COMMA_KUTEN: '。',
    PunctuationStyle.FULLWIDTH_COMMA_FULLWIDTH_PERIOD: '．',
    PunctuationStyle.TOUTEN_FULLWIDTH_PERIOD: '．',
}

_CORNER_BRACKET_STYLES = (SymbolStyle.CORNER_BRACKET_MIDDLE_DOT, SymbolStyle.CORNER_BRACKET_BACKSLASH)
_MIDDLE_DOT_STYLES = (SymbolStyle.CORNER_BRACKET_MIDDLE_DOT, SymbolStyle.SQUARE_BRACKET_MIDDLE_DOT)


def normalize(text, general, character_width, romaji_rules):
    """
    Normalize typed text for the candidate service, one character at a time.

    Args:
        text: typed text, usually a single character
        general: config.GeneralConfig
        character_width: config.CharacterWidthConfig
        romaji_rules: sequence of config.RomajiRule

    Returns:
        str: the normalized text (one output per input character)
    """
    return ''.join(normalize_char(c, general, character_width, romaji_rules) for c in text)


def normalize_char(c, general, character_width, romaji_rules):
    key = KEY_NORMALIZATION.get(c, c)

    override = find_romaji_priority_output(key, romaji_rules)
    if override is not None:
        return override

    base = apply_basic_setting(key, general)
    if base is None:
        base = legacy_fullwidth_or_half(key, character_width)

    return ''.join(apply_width_group_char(ch, character_width.groups, key) for ch in base)


def find_romaji_priority_output(key, romaji_rules):
    if key not in ROMAJI_PRIORITY_KEYS:
        return None
    for rule in romaji_rules:
        if rule.input == key and len(rule.input) == 1 and rule.output:
            logger.debug(f'romaji rule overrides "{key}" -> "{rule.output}"')
            return rule.output
    return None


def apply_basic_setting(key, general):
    if key == ',':
        return _PUNCTUATION_COMMA[general.punctuation_style]
    if key == '.':
        return _PUNCTUATION_PERIOD[general.punctuation_style]
    if key == '[':
        return '「' if general.symbol_style in _CORNER_BRACKET_STYLES else '［'
    if key == ']':
        return '」' if general.symbol_style in _CORNER_BRACKET_STYLES else '］'
    if key == '/':
        return '・' if general.symbol_style in _MIDDLE_DOT_STYLES else '／'
    if key == '\\':
        return '・' if general.symbol_style in _MIDDLE_DOT_STYLES else '＼'
    return None


def legacy_fullwidth_or_half(key, character_width):
    fullwidth = HALF_FULL_CONFIGURABLE.get(key)
    if fullwidth is not None and character_width.is_symbol_fullwidth(key):
        return fullwidth
    return key


def _toggle_with_mode(current, mode, half, full):
    if mode is WidthMode.HALF:
        return half
    if current == half or current == full:
        return full
    return current


def _apply_alphabet(c, mode):
    code = ord(c)
    if mode is WidthMode.HALF:
        if 0xFF21 <= code <= 0xFF3A or 0xFF41 <= code <= 0xFF5A:
            return chr(code - FULLWIDTH_OFFSET)
        return c
    if c.isascii() and c.isalpha():
        return chr(code + FULLWIDTH_OFFSET)
    return c


def _apply_slash(c, groups, source_key):
    # the slash key renders in the middle-dot family; a solidus glyph that
    # the style produced stays a solidus
    if source_key == '/' and c in MIDDLE_DOT_FORMS:
        return _toggle_with_mode(c, groups.middle_dot_corner_bracket, '･', '・')
    if c in SLASH_FORMS:
        return _toggle_with_mode(c, groups.math_symbol, '/', '／')
    return _toggle_with_mode(c, groups.middle_dot_corner_bracket, '･', '・')


_GROUP_PAIRS = {}


def _register(group, *pairs):
    for half, full in pairs:
        _GROUP_PAIRS[half] = (group, half, full)
        _GROUP_PAIRS[full] = (group, half, full)


_register('number', *HALF_FULL_DIGITS.items())
_register('bracket', ('(', '（'), (')', '）'), ('{', '｛'), ('}', '｝'), ('[', '［'), (']', '］'))
_register('middle_dot_corner_bracket', ('｢', '「'), ('｣', '」'))
_register('quote', ('"', '”'), ("'", '’'))
_register('colon_semicolon', (':', '：'), (';', '；'))
_register('hash_group', ('#', '＃'), ('$', '＄'), ('%', '％'), ('&', '＆'), ('@', '＠'),
          ('^', '＾'), ('_', '＿'), ('|', '｜'), ('`', '｀'))
_register('math_symbol', ('<', '＜'), ('>', '＞'), ('=', '＝'), ('+', '＋'), ('*', '＊'))
_register('question_exclamation', ('?', '？'), ('!', '！'))


def apply_width_group_char(c, groups, source_key):
    """
    Apply the width groups to one character of the intermediate text.

    "half" forces the half-width representative; "full" forces the
    full-width one only when the character is already one of the group's
    two recognized forms.
    """
    if c.isascii() and c.isalpha() or 0xFF21 <= ord(c) <= 0xFF3A or 0xFF41 <= ord(c) <= 0xFF5A:
        return _apply_alphabet(c, groups.alphabet)

    if c in SLASH_FORMS or c in MIDDLE_DOT_FORMS:
        return _apply_slash(c, groups, source_key)

    if c in (',', '、', '，', '､'):
        if groups.comma_period is WidthMode.HALF:
            return '､'
        return '，' if c == '，' else '、'
    if c in ('.', '。', '．', '｡'):
        if groups.comma_period is WidthMode.HALF:
            return '｡'
        return '．' if c == '．' else '。'

    if c in ('\\', '￥', '＼'):
        return '\\' if groups.hash_group is WidthMode.HALF else '＼'

    if c in ('~', '～', '〜'):
        if groups.tilde is WidthMode.HALF:
            return '~'
        return '〜' if c == '〜' else '～'

    if c in ('-', 'ー', '－'):
        if groups.math_symbol is WidthMode.HALF:
            return '-'
        return '－' if c == '－' else 'ー'

    entry = _GROUP_PAIRS.get(c)
    if entry is None:
        return c
    group, half, full = entry
    return _toggle_with_mode(c, getattr(groups, group), half, full)


def to_halfwidth(s):
    """
    Reverse the legacy table.
    Used for the whole-buffer "half-width latin" rendering.
    """
    return ''.join(FULL_HALF_SYMBOLS.get(c, c) for c in s)


def to_fullwidth(s, process_alphabet):
    """
    Apply the legacy table. With process_alphabet, the lowercase letters
    a-z are widened as well (the "full-width latin" rendering).
    """
    result = []
    for c in s:
        if process_alphabet and c in HALF_FULL_ALPHABET:
            result.append(HALF_FULL_ALPHABET[c])
        else:
            result.append(HALF_FULL_SYMBOLS.get(c, c))
    return ''.join(result)


def to_fullwidth_with_config(s, process_alphabet, character_width):
    """
    Like to_fullwidth(), but each symbol and digit is widened only when the
    per-symbol full-width flag says so.
    """
    result = []
    for c in s:
        if process_alphabet and c in HALF_FULL_ALPHABET:
            result.append(HALF_FULL_ALPHABET[c])
        else:
            result.append(legacy_fullwidth_or_half(c, character_width))
    return ''.join(result)
