"""Raw JSON-RPC calls to a node, with a compact value syntax for parameters."""

from __future__ import annotations

import asyncio
import hashlib
import itertools
import json
import string
from typing import Any, Iterable, Optional

import websockets
import websockets.exceptions

_BASE58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_BASE58_INDEX = {char: index for index, char in enumerate(_BASE58_ALPHABET)}
_SS58_PREFIX = b"SS58PRE"
_ACCOUNT_LENGTH = 32
_CHECKSUM_LENGTH = 2
_ASCII_ALNUM = frozenset(string.ascii_letters + string.digits)
_IDENT_START = frozenset(string.ascii_letters + "_")
_IDENT_CHARS = _ASCII_ALNUM | {"_"}
_ESCAPES = {'"': '"', "'": "'", "\\": "\\", "n": "\n", "t": "\t", "r": "\r", "0": "\0"}
_EXCLUDED_PATTERNS = ("watch", "unstable", "subscribe")


class RpcError(Exception):
    """An RPC request could not be built, sent or answered."""


def _base58_decode(text: str) -> bytes:
    number = 0
    for char in text:
        digit = _BASE58_INDEX.get(char)
        if digit is None:
            raise ValueError(f"invalid base58 character {char!r}")
        number = number * 58 + digit
    body = number.to_bytes((number.bit_length() + 7) // 8, "big")
    leading_zeros = len(text) - len(text.lstrip("1"))
    return b"\x00" * leading_zeros + body


def ss58_decode(address: str) -> bytes:
    """Decode an SS58 address into its 32-byte account id."""
    data = _base58_decode(address)
    if len(data) < 2:
        raise ValueError("invalid SS58 address length")
    if data[0] < 64:
        prefix_length = 1
    elif data[0] < 128:
        prefix_length = 2
    else:
        raise ValueError("invalid SS58 address prefix")
    payload_end = prefix_length + _ACCOUNT_LENGTH
    if len(data) != payload_end + _CHECKSUM_LENGTH:
        raise ValueError("invalid SS58 address length")
    digest = hashlib.blake2b(_SS58_PREFIX + data[:payload_end], digest_size=64).digest()
    if data[payload_end:] != digest[:_CHECKSUM_LENGTH]:
        raise ValueError("invalid SS58 address checksum")
    return data[prefix_length:payload_end]


class _ValueParser:
    """Recursive-descent parser for the parameter value syntax."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def _fail(self, message: str) -> None:
        raise ValueError(f"{message} at position {self.pos}")

    def _peek(self) -> str:
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def _skip_ws(self) -> None:
        while self._peek().isspace():
            self.pos += 1

    def _expect(self, char: str) -> None:
        if self._peek() != char:
            self._fail(f"expected {char!r}")
        self.pos += 1

    def _alnum_end(self) -> int:
        end = self.pos
        while end < len(self.text) and self.text[end] in _ASCII_ALNUM:
            end += 1
        return end

    def value(self) -> Any:
        self._skip_ws()
        if self.pos >= len(self.text):
            self._fail("expected a value")
        for custom in (self._hex, self._ss58):
            result = custom()
            if result is not None:
                return result
        char = self._peek()
        if char == "(":
            return self._sequence(")")
        if char == "{":
            return self._named()
        if char == '"':
            return self._string()
        if char == "'":
            return self._char()
        if char == "<":
            return self._bits()
        if char in string.digits or char in "+-":
            return self._number()
        if char in _IDENT_START:
            return self._ident_value()
        self._fail(f"unexpected character {char!r}")

    def _hex(self) -> Optional[str]:
        if not self.text.startswith("0x", self.pos):
            return None
        end = self._alnum_end()
        hex_text = self.text[self.pos:end]
        self.pos = end
        return hex_text

    def _ss58(self) -> Optional[str]:
        end = self._alnum_end()
        if end == self.pos:
            return None
        try:
            account = ss58_decode(self.text[self.pos:end])
        except ValueError:
            return None
        self.pos = end
        return "0x" + account.hex()

    def _sequence(self, close: str) -> list:
        self.pos += 1
        items: list = []
        self._skip_ws()
        if self._peek() == close:
            self.pos += 1
            return items
        while True:
            items.append(self.value())
            if self._separator(close):
                return items

    def _separator(self, close: str) -> bool:
        """Consume ``,`` or the closing bracket; True once the group is closed."""
        self._skip_ws()
        char = self._peek()
        if char == close:
            self.pos += 1
            return True
        if char != ",":
            self._fail(f"expected ',' or {close!r}")
        self.pos += 1
        self._skip_ws()
        if self._peek() == close:
            self.pos += 1
            return True
        return False

    def _named(self) -> dict:
        self.pos += 1
        result: dict = {}
        self._skip_ws()
        if self._peek() == "}":
            self.pos += 1
            return result
        while True:
            self._skip_ws()
            key = self._string() if self._peek() == '"' else self._ident()
            if not key:
                self._fail("expected a field name")
            self._skip_ws()
            self._expect(":")
            result[key] = self.value()
            if self._separator("}"):
                return result

    def _ident(self) -> str:
        start = self.pos
        while self._peek() in _IDENT_CHARS and self._peek():
            self.pos += 1
        return self.text[start:self.pos]

    def _ident_value(self) -> Any:
        name = self._ident()
        if name == "true":
            return True
        if name == "false":
            return False
        self._skip_ws()
        char = self._peek()
        if char == "(":
            return {"name": name, "values": self._sequence(")")}
        if char == "{":
            return {"name": name, "values": self._named()}
        self._fail(f"expected '(' or '{{' after variant name {name!r}")

    def _escape(self) -> str:
        char = self._peek()
        if char == "u" and self.text.startswith("u{", self.pos):
            close = self.text.find("}", self.pos)
            if close < 0:
                self._fail("unterminated unicode escape")
            digits = self.text[self.pos + 2:close]
            try:
                decoded = chr(int(digits, 16))
            except ValueError:
                self._fail(f"invalid unicode escape {digits!r}")
            self.pos = close + 1
            return decoded
        if char not in _ESCAPES or not char:
            self._fail(f"invalid escape {char!r}")
        self.pos += 1
        return _ESCAPES[char]

    def _string(self) -> str:
        self.pos += 1
        chars = []
        while True:
            if self.pos >= len(self.text):
                self._fail("unterminated string")
            char = self.text[self.pos]
            self.pos += 1
            if char == '"':
                return "".join(chars)
            chars.append(self._escape() if char == "\\" else char)

    def _char(self) -> str:
        self.pos += 1
        if self._peek() == "\\":
            self.pos += 1
            char = self._escape()
        else:
            char = self._peek()
            if not char or char == "'":
                self._fail("expected a character")
            self.pos += 1
        self._expect("'")
        return char

    def _bits(self) -> list:
        self.pos += 1
        bits = []
        while True:
            self._skip_ws()
            char = self._peek()
            if char == ">":
                self.pos += 1
                return bits
            if char not in ("0", "1") or not char:
                self._fail("expected '0', '1' or '>' in bit sequence")
            bits.append(char == "1")
            self.pos += 1

    def _number(self) -> int:
        start = self.pos
        negative = self._peek() == "-"
        if self._peek() in "+-":
            self.pos += 1
        if self._peek() not in string.digits or not self._peek():
            self._fail("expected digits")
        while self._peek() and self._peek() in string.digits + "_":
            self.pos += 1
        number = int(self.text[start:self.pos].replace("_", ""))
        if negative and number < -(2**127):
            self._fail("number out of range")
        if not negative and number >= 2**128:
            self._fail("number out of range")
        return number


def parse_value(text: str) -> Any:
    """Parse one parameter into a JSON-ready value.

    ``0x`` hex and SS58 addresses become hex strings, ``(..)`` a list, ``{k: v}``
    a mapping, ``Name(..)`` a variant. Text after the first value is ignored.
    """
    if not isinstance(text, str):
        raise TypeError(f"expected a string, got {type(text).__name__}")
    return _ValueParser(text).value()


class RawParams:
    """Positional parameters of an RPC call, parsed from their text forms."""

    def __init__(self, params: Iterable[str]) -> None:
        try:
            values = [parse_value(param) for param in params]
        except (ValueError, TypeError) as exc:
            raise RpcError(f"Method parameters parsing failed: {exc}") from exc
        self.values: Optional[list] = values or None

    def to_json(self) -> Optional[str]:
        """Compact JSON array of the parameters, or ``None`` when there are none."""
        if self.values is None:
            return None
        return json.dumps(self.values, separators=(",", ":"), ensure_ascii=False)

    def __repr__(self) -> str:
        return f"RawParams({self.values!r})"


def _describe_error(error: Any) -> str:
    if isinstance(error, dict):
        message = error.get("message", "")
        code = error.get("code")
        return f"{message} (code {code})" if code is not None else str(message)
    return str(error)


class RpcRequest:
    """A JSON-RPC client over a WebSocket connection to a node."""

    def __init__(self, url: str) -> None:
        self.url = str(url)
        self._connection: Any = None
        self._ids = itertools.count(1)
        self._lock = asyncio.Lock()

    async def __aenter__(self) -> "RpcRequest":
        await self._connect()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def _connect(self) -> Any:
        if self._connection is None:
            try:
                self._connection = await websockets.connect(self.url, max_size=None)
            except (OSError, websockets.exceptions.WebSocketException) as exc:
                raise RpcError(f"Failed to connect to {self.url}: {exc}") from exc
        return self._connection

    async def close(self) -> None:
        """Close the connection if one is open."""
        if self._connection is not None:
            connection, self._connection = self._connection, None
            await connection.close()

    async def _request(self, method: str, params: Optional[list]) -> Any:
        async with self._lock:
            connection = await self._connect()
            request_id = next(self._ids)
            payload: dict[str, Any] = {"jsonrpc": "2.0", "id": request_id, "method": method}
            if params is not None:
                payload["params"] = params
            try:
                await connection.send(json.dumps(payload))
                while True:
                    reply = json.loads(await connection.recv())
                    if isinstance(reply, dict) and reply.get("id") == request_id:
                        break
            except websockets.exceptions.ConnectionClosed as exc:
                raise RpcError(f"connection closed: {exc}") from exc
            except json.JSONDecodeError as exc:
                raise RpcError(f"invalid JSON in response: {exc}") from exc
        if "error" in reply:
            raise RpcError(_describe_error(reply["error"]))
        return reply.get("result")

    async def supported_methods(self) -> list[str]:
        """Methods the node offers, without subscription and unstable ones."""
        try:
            result = await self._request("rpc_methods", None)
        except RpcError as exc:
            raise RpcError(f"Rpc call 'rpc_methods' failed: {exc}") from exc
        methods = result.get("methods") if isinstance(result, dict) else None
        if not isinstance(methods, list):
            raise RpcError("Methods field parsing failed!")
        return [
            method
            for method in methods
            if isinstance(method, str)
            and not any(pattern in method.lower() for pattern in _EXCLUDED_PATTERNS)
        ]

    async def raw_call(self, method: str, params: Optional[RawParams] = None) -> Any:
        """Call a supported method and return the decoded JSON result."""
        methods = await self.supported_methods()
        if method not in methods:
            raise RpcError(
                f"Method not found, supported methods: {', '.join(methods)}"
            )
        values = params.values if params is not None else None
        try:
            return await self._request(method, values)
        except RpcError as exc:
            raise RpcError(f"Raw RPC call failed: {exc}") from exc