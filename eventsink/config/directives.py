"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
EventSink, a product of Garudex Labs

Directive block parser for EventSink.

Translates a block of directive lines into a SinkConfig:

    kafka {
        bootstrap_servers "broker-1:9092, broker-2:9092"
        topic certificate-events
        tls on
        tls_no_verify
        sasl_scram sha512 eventsink "s3cret"
    }

The ``kafka {`` header and closing brace are optional. Arguments follow
shell quoting rules. An unquoted ``#`` at the start of a token begins a
comment; inside a token it is literal. A repeated directive
overwrites the earlier value.
"""

import shlex
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Tuple, Union

from eventsink.config.settings import SASLAlgorithm, SinkConfig, split_servers
from eventsink.exceptions import ConfigurationLoadError, DirectiveParseError
from eventsink.logging_config import get_logger

logger = get_logger(__name__)


class DirectiveKind(str, Enum):
    """Directives recognized inside a sink block."""
    TOPIC = "topic"
    SASL_SCRAM = "sasl_scram"
    TLS = "tls"
    TLS_NO_VERIFY = "tls_no_verify"
    BOOTSTRAP_SERVERS = "bootstrap_servers"


DirectiveParser = Callable[[List[str], Dict[str, Any], int], None]


def _expect_args(kind: DirectiveKind, args: List[str], count: int, line: int) -> None:
    if len(args) != count:
        raise DirectiveParseError(
            f"wrong argument count for '{kind.value}': expected {count}, got {len(args)}",
            line=line,
        )


def _parse_topic(args: List[str], values: Dict[str, Any], line: int) -> None:
    _expect_args(DirectiveKind.TOPIC, args, 1, line)
    values["topic"] = args[0]


def _parse_sasl_scram(args: List[str], values: Dict[str, Any], line: int) -> None:
    _expect_args(DirectiveKind.SASL_SCRAM, args, 3, line)
    method, username, password = args
    try:
        algorithm = SASLAlgorithm(method)
    except ValueError:
        raise DirectiveParseError(f"unsupported SCRAM method: {method}", line=line) from None

    values["sasl_algorithm"] = algorithm.value
    values["sasl_username"] = username
    values["sasl_password"] = password
    values["sasl_auth"] = True


def _parse_tls(args: List[str], values: Dict[str, Any], line: int) -> None:
    _expect_args(DirectiveKind.TLS, args, 1, line)
    if args[0] == "on":
        values["tls_enabled"] = True
    elif args[0] == "off":
        values["tls_enabled"] = False
    else:
        raise DirectiveParseError(
            f"invalid value for tls: {args[0]!r} (expected 'on' or 'off')", line=line
        )


def _parse_tls_no_verify(args: List[str], values: Dict[str, Any], line: int) -> None:
    _expect_args(DirectiveKind.TLS_NO_VERIFY, args, 0, line)
    values["tls_no_verify"] = True


def _parse_bootstrap_servers(args: List[str], values: Dict[str, Any], line: int) -> None:
    _expect_args(DirectiveKind.BOOTSTRAP_SERVERS, args, 1, line)
    values["bootstrap_servers"] = split_servers(args[0])


_PARSERS: Dict[DirectiveKind, DirectiveParser] = {
    DirectiveKind.TOPIC: _parse_topic,
    DirectiveKind.SASL_SCRAM: _parse_sasl_scram,
    DirectiveKind.TLS: _parse_tls,
    DirectiveKind.TLS_NO_VERIFY: _parse_tls_no_verify,
    DirectiveKind.BOOTSTRAP_SERVERS: _parse_bootstrap_servers,
}

_unhandled = set(DirectiveKind) - set(_PARSERS)
if _unhandled:
    raise RuntimeError(f"directive kinds without a parser: {sorted(k.value for k in _unhandled)}")


def _strip_comment(raw: str) -> str:
    """Cut the line at the first unquoted ``#`` that begins a token."""
    quote = None
    escaped = False
    token_start = True
    for index, char in enumerate(raw):
        if escaped:
            escaped = False
        elif char == "\\" and quote != "'":
            escaped = True
        elif quote is not None:
            if char == quote:
                quote = None
        elif char in ('"', "'"):
            quote = char
        elif char == "#" and token_start:
            return raw[:index]
        else:
            token_start = char.isspace()
            continue
        token_start = False
    return raw


def _tokenize(text: str) -> Iterator[Tuple[int, List[str]]]:
    """Yield (line number, tokens) for every non-blank line."""
    for number, raw in enumerate(text.splitlines(), start=1):
        try:
            tokens = shlex.split(_strip_comment(raw), comments=False)
        except ValueError as e:
            raise DirectiveParseError(str(e), line=number) from e
        if tokens:
            yield number, tokens


def _block_body(text: str) -> List[Tuple[int, List[str]]]:
    """Strip the optional ``<name> {`` header and closing brace."""
    lines = list(_tokenize(text))
    if not lines:
        return []

    first_line, first_tokens = lines[0]
    if first_tokens[-1] != "{":
        body = lines
    else:
        if len(first_tokens) > 2:
            raise DirectiveParseError(
                f"unexpected tokens in block header: {' '.join(first_tokens)}", line=first_line
            )
        if lines[-1][1] != ["}"]:
            closing = [i for i, (_, tokens) in enumerate(lines) if tokens == ["}"]]
            if closing:
                raise DirectiveParseError(
                    "unexpected content after block", line=lines[closing[0] + 1][0]
                )
            raise DirectiveParseError("unclosed block: missing '}'", line=first_line)
        body = lines[1:-1]

    for number, tokens in body:
        if "{" in tokens or "}" in tokens:
            raise DirectiveParseError("unexpected brace: nested blocks are not supported", line=number)
    return body


def parse_directives(text: str) -> SinkConfig:
    """
    Parse a directive block into a SinkConfig.

    Fields not set by any directive keep their defaults. The result is not
    validated; call ``validate_config`` before provisioning.

    Args:
        text: Directive block source

    Returns:
        SinkConfig: Parsed configuration

    Raises:
        DirectiveParseError: On unknown directives, bad arguments or malformed blocks
    """
    values: Dict[str, Any] = {}
    seen: Dict[DirectiveKind, int] = {}

    for number, (name, *args) in _block_body(text):
        try:
            kind = DirectiveKind(name)
        except ValueError:
            raise DirectiveParseError(f"unsupported directive: {name}", line=number) from None

        if kind in seen:
            logger.debug(
                "directive_repeated",
                directive=kind.value,
                previous_line=seen[kind],
                line=number,
            )
        seen[kind] = number

        _PARSERS[kind](args, values, number)

    return SinkConfig(**values)


def load_directives(path: Union[str, Path]) -> SinkConfig:
    """
    Read and parse a directive file.

    Raises:
        ConfigurationLoadError: If the file cannot be read
        DirectiveParseError: If the contents cannot be parsed
    """
    path = Path(path).expanduser()
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        logger.error("directive_file_read_failed", path=str(path), error=str(e))
        raise ConfigurationLoadError(f"Failed to read directive file '{path}': {e}") from e

    config = parse_directives(text)
    logger.debug("directive_file_loaded", path=str(path))
    return config
