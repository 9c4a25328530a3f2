#!/usr/bin/env python3
"""
candidate_service.py - Client side of the remote candidate service
リモート候補サービスのクライアント側

================================================================================
OVERVIEW / 概要
================================================================================

The kana-kanji conversion itself does not happen in this process. A separate
server keeps the typed text, produces the candidate lists and draws the
candidate window. The engine only tells it what happened:

かな漢字変換自体はこのプロセスでは行わない。別サーバーが入力テキストを保持し、
候補リストを生成し、候補ウィンドウを描画する。エンジンは起きたことを伝えるのみ:

    append_text("k") / remove_text() / shrink_text(n) / move_cursor(offset)
        → Candidates   (the new candidate set / 新しい候補集合)

    set_candidates([...]) / set_selection(i) / set_input_mode("あ")
    clear_text() / show_window() / hide_window()
        → nothing      (window and bookkeeping / ウィンドウと管理)

move_cursor(0) probes the current clause without moving. Three offsets are
reserved as out-of-band signals that keep the server's copy of the clause
navigation stack in sync; they never move the text cursor.

move_cursor(0) は移動せずに現在の文節を問い合わせる。3つのオフセットは
文節ナビゲーションのスタックをサーバーと同期させるための合図として予約されて
おり、テキストカーソルは動かさない。

================================================================================
WIRE FORMAT / 通信形式
================================================================================

SocketCandidateService speaks newline-delimited JSON over a Unix domain
socket, one request line and one response line per call:

    → {"method": "append_text", "params": {"text": "k"}}
    ← {"result": {"texts": ["k"], "sub_texts": [""],
                  "corresponding_count": [1], "hiragana": "k"}}

    ← {"error": "no such method"}          (failure / 失敗)

================================================================================
"""

import abc
import dataclasses
import logging
import socket

import orjson

logger = logging.getLogger(__name__)

MOVE_CURSOR_CLEAR_CLAUSE_SNAPSHOTS = 125
MOVE_CURSOR_PUSH_CLAUSE_SNAPSHOT = 126
MOVE_CURSOR_POP_CLAUSE_SNAPSHOT = 127


class CandidateServiceError(Exception):
    """Raised when a call to the candidate service fails."""


@dataclasses.dataclass(frozen=True)
class Candidates:
    """
    The candidate set for the active clause, as parallel tuples.

    texts[i] is the display text of candidate i, sub_texts[i] the remainder
    shown after it, and corresponding_count[i] the number of raw input
    characters it consumes. hiragana is the reading of the active selection.
    """
    texts: tuple = ()
    sub_texts: tuple = ()
    corresponding_count: tuple = ()
    hiragana: str = ''

    def __post_init__(self):
        # accept lists from callers, but store tuples
        object.__setattr__(self, 'texts', tuple(self.texts))
        object.__setattr__(self, 'sub_texts', tuple(self.sub_texts))
        object.__setattr__(self, 'corresponding_count', tuple(self.corresponding_count))
        if not len(self.texts) == len(self.sub_texts) == len(self.corresponding_count):
            raise ValueError(
                f'candidate arrays differ in length: texts={len(self.texts)} '
                f'sub_texts={len(self.sub_texts)} corresponding_count={len(self.corresponding_count)}')

    def __len__(self):
        return len(self.texts)

    @classmethod
    def empty(cls):
        return cls()

    @classmethod
    def from_dict(cls, data):
        try:
            return cls(
                texts=[str(t) for t in data.get('texts', [])],
                sub_texts=[str(t) for t in data.get('sub_texts', [])],
                corresponding_count=[int(n) for n in data.get('corresponding_count', [])],
                hiragana=str(data.get('hiragana', '')),
            )
        except (AttributeError, TypeError, ValueError) as e:
            raise CandidateServiceError(f'malformed candidates: {data!r}') from e

    def to_dict(self):
        return {
            'texts': list(self.texts),
            'sub_texts': list(self.sub_texts),
            'corresponding_count': list(self.corresponding_count),
            'hiragana': self.hiragana,
        }


class CandidateService(abc.ABC):
    """The capability the executor needs from the candidate service."""

    @abc.abstractmethod
    def append_text(self, text):
        """Append text to the server-side buffer; returns Candidates."""

    @abc.abstractmethod
    def remove_text(self):
        """Remove one unit from the end of the buffer; returns Candidates."""

    @abc.abstractmethod
    def shrink_text(self, count):
        """Drop count characters from the front of the buffer; returns Candidates."""

    @abc.abstractmethod
    def move_cursor(self, offset):
        """Move the clause cursor (or send a sentinel); returns Candidates."""

    @abc.abstractmethod
    def set_candidates(self, texts):
        pass

    @abc.abstractmethod
    def set_selection(self, index):
        pass

    @abc.abstractmethod
    def set_input_mode(self, label):
        pass

    @abc.abstractmethod
    def clear_text(self):
        pass

    @abc.abstractmethod
    def show_window(self):
        pass

    @abc.abstractmethod
    def hide_window(self):
        pass


def encode_request(method, params):
    return orjson.dumps({'method': method, 'params': params}) + b'\n'


def decode_response(line):
    """
    Decode one response line.

    Returns:
        the "result" member (None when absent)

    Raises:
        CandidateServiceError: on malformed JSON or a server-side error
    """
    if not line:
        raise CandidateServiceError('connection closed by the candidate service')
    try:
        response = orjson.loads(line)
    except orjson.JSONDecodeError as e:
        raise CandidateServiceError(f'malformed response: {line[:80]!r}') from e
    if not isinstance(response, dict):
        raise CandidateServiceError(f'response must be an object: {response!r}')
    if 'error' in response:
        raise CandidateServiceError(str(response['error']))
    return response.get('result')


class SocketCandidateService(CandidateService):
    """
    CandidateService over a Unix domain socket.

    The connection is opened on first use. Any failure closes it, so the
    next call starts with a fresh connection.
    """

    def __init__(self, path, timeout=None):
        self._path = path
        self._timeout = timeout
        self._sock = None
        self._reader = None

    def _connect(self):
        logger.debug(f'connecting to the candidate service at {self._path}')
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        sock.settimeout(self._timeout)
        try:
            sock.connect(self._path)
        except OSError:
            sock.close()
            raise
        return sock

    def attach(self, sock):
        """Use an already connected socket (e.g. one end of a socketpair)."""
        self.close()
        self._sock = sock
        self._reader = sock.makefile('rb')

    def close(self):
        if self._reader is not None:
            self._reader.close()
            self._reader = None
        if self._sock is not None:
            self._sock.close()
            self._sock = None

    def _call(self, method, **params):
        try:
            if self._sock is None:
                self.attach(self._connect())
            self._sock.sendall(encode_request(method, params))
            line = self._reader.readline()
        except OSError as e:
            self.close()
            raise CandidateServiceError(f'{method} failed: {e}') from e
        try:
            return decode_response(line)
        except CandidateServiceError:
            self.close()
            raise

    def _call_candidates(self, method, **params):
        result = self._call(method, **params)
        if result is None:
            raise CandidateServiceError(f'{method} returned no candidates')
        if not isinstance(result, dict):
            raise CandidateServiceError(f'{method} returned {type(result).__name__}, expected an object')
        return Candidates.from_dict(result)

    def append_text(self, text):
        return self._call_candidates('append_text', text=text)

    def remove_text(self):
        return self._call_candidates('remove_text')

    def shrink_text(self, count):
        return self._call_candidates('shrink_text', count=count)

    def move_cursor(self, offset):
        return self._call_candidates('move_cursor', offset=offset)

    def set_candidates(self, texts):
        self._call('set_candidates', texts=list(texts))

    def set_selection(self, index):
        self._call('set_selection', index=index)

    def set_input_mode(self, label):
        self._call('set_input_mode', mode=label)

    def clear_text(self):
        self._call('clear_text')

    def show_window(self):
        self._call('show_window')

    def hide_window(self):
        self._call('hide_window')
