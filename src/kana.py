#!/usr/bin/env python3
# kana.py - Hiragana / katakana / half-width katakana conversion

# ぁ..ゖ and ァ..ヶ are laid out in the same order, 0x60 apart
HIRAGANA_START = 0x3041
HIRAGANA_END = 0x3096
KATAKANA_START = 0x30A1
KATAKANA_END = 0x30F6
KANA_OFFSET = KATAKANA_START - HIRAGANA_START

HALF_KATAKANA = {
    'ァ': 'ｧ', 'ア': 'ｱ', 'ィ': 'ｨ', 'イ': 'ｲ', 'ゥ': 'ｩ', 'ウ': 'ｳ', 'ェ': 'ｪ', 'エ': 'ｴ',
    'ォ': 'ｫ', 'オ': 'ｵ', 'カ': 'ｶ', 'ガ': 'ｶﾞ', 'キ': 'ｷ', 'ギ': 'ｷﾞ', 'ク': 'ｸ', 'グ': 'ｸﾞ',
    'ケ': 'ｹ', 'ゲ': 'ｹﾞ', 'コ': 'ｺ', 'ゴ': 'ｺﾞ', 'サ': 'ｻ', 'ザ': 'ｻﾞ', 'シ': 'ｼ', 'ジ': 'ｼﾞ',
    'ス': 'ｽ', 'ズ': 'ｽﾞ', 'セ': 'ｾ', 'ゼ': 'ｾﾞ', 'ソ': 'ｿ', 'ゾ': 'ｿﾞ', 'タ': 'ﾀ', 'ダ': 'ﾀﾞ',
    'チ': 'ﾁ', 'ヂ': 'ﾁﾞ', 'ッ': 'ｯ', 'ツ': 'ﾂ', 'ヅ': 'ﾂﾞ', 'テ': 'ﾃ', 'デ': 'ﾃﾞ', 'ト': 'ﾄ',
    'ド': 'ﾄﾞ', 'ナ': 'ﾅ', 'ニ': 'ﾆ', 'ヌ': 'ﾇ', 'ネ': 'ﾈ', 'ノ': 'ﾉ', 'ハ': 'ﾊ', 'バ': 'ﾊﾞ',
    'パ': 'ﾊﾟ', 'ヒ': 'ﾋ', 'ビ': 'ﾋﾞ', 'ピ': 'ﾋﾟ', 'フ': 'ﾌ', 'ブ': 'ﾌﾞ', 'プ': 'ﾌﾟ', 'ヘ': 'ﾍ',
    'ベ': 'ﾍﾞ', 'ペ': 'ﾍﾟ', 'ホ': 'ﾎ', 'ボ': 'ﾎﾞ', 'ポ': 'ﾎﾟ', 'マ': 'ﾏ', 'ミ': 'ﾐ', 'ム': 'ﾑ',
    'メ': 'ﾒ', 'モ': 'ﾓ', 'ャ': 'ｬ', 'ヤ': 'ﾔ', 'ュ': 'ｭ', 'ユ': 'ﾕ', 'ョ': 'ｮ', 'ヨ': 'ﾖ',
    'ラ': 'ﾗ', 'リ': 'ﾘ', 'ル': 'ﾙ', 'レ': 'ﾚ', 'ロ': 'ﾛ', 'ヮ': 'ﾜ', 'ワ': 'ﾜ', 'ヰ': 'ｲ',
    'ヱ': 'ｴ', 'ヲ': 'ｦ', 'ン': 'ﾝ', 'ヴ': 'ｳﾞ', 'ヵ': 'ｶ', 'ヶ': 'ｹ', 'ヷ': 'ﾜﾞ', 'ヺ': 'ｦﾞ',
    'ー': 'ｰ', '・': '･', '「': '｢', '」': '｣', '、': '､', '。': '｡', '゛': 'ﾞ', '゜': 'ﾟ',
}


def to_katakana(s):
    """
    Convert hiragana to (full-width) katakana; everything else is kept.

    Example:
        to_katakana('にほんご') → 'ニホンゴ'
    """
    return ''.join(
        chr(ord(c) + KANA_OFFSET) if HIRAGANA_START <= ord(c) <= HIRAGANA_END else c
        for c in s
    )


def to_hiragana(s):
    return ''.join(
        chr(ord(c) - KANA_OFFSET) if KATAKANA_START <= ord(c) <= KATAKANA_END else c
        for c in s
    )


def to_half_katakana(s):
    """
    Convert hiragana or katakana to half-width katakana.
    Voiced kana expand to two characters (ガ → ｶﾞ).
    """
    return ''.join(HALF_KATAKANA.get(c, c) for c in to_katakana(s))
