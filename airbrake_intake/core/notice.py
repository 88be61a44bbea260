"""
Airbrake notice parsing.

Reads an Airbrake v2.4 XML notice and produces an immutable Notice:

    <notice version="2.4">
      <api-key>{"project": "shop", "tracker": "Bug"}</api-key>
      <notifier>...</notifier>
      <error>
        <class>RuntimeError</class>
        <message>RuntimeError: boom</message>
        <backtrace><line file="..." method="..." number="..."/>...</backtrace>
      </error>
      <request><session><var key="...">...</var><var key="log">[...]</var></session></request>
      <server-environment><environment-name>production</environment-name></server-environment>
    </notice>

Required sections are checked in order (version, api-key, notifier, error)
and the first failure is raised. Optional sections never fail the parse.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Union
from xml.etree.ElementTree import Element

import defusedxml.ElementTree as ET
import structlog
from defusedxml import DefusedXmlException

from .elements import GenericValue, ObjectValue, convert_element, is_blank
from .errors import EmbeddedPayloadError, InvalidNotice, UnsupportedVersion
from .normalizer import Frame, LogEntry, normalize_backtrace, normalize_session_log
from .payload import decode_string_mapping

logger = structlog.get_logger()

# Supported airbrake api versions
SUPPORTED_API_VERSIONS = frozenset({"2.4"})


@dataclass(frozen=True)
class Error:
    """The error section of a notice."""
    message: str
    class_name: Optional[str] = None
    backtrace: tuple[Frame, ...] = ()

    @property
    def primary_frame(self) -> Optional[Frame]:
        """The frame where the error was raised, if any."""
        return self.backtrace[0] if self.backtrace else None


@dataclass(frozen=True)
class Session:
    """Session variables plus the optional timestamped log."""
    variables: ObjectValue
    log: Optional[tuple[LogEntry, ...]] = None


@dataclass(frozen=True)
class Request:
    """Request context. Everything except the session passes through untyped."""
    fields: ObjectValue
    session: Optional[Session] = None

    @property
    def url(self) -> Optional[str]:
        return self.fields.text("url")


@dataclass(frozen=True)
class Notice:
    """A normalized error report. Immutable and hashable once built."""
    version: str
    params: Mapping[str, str]
    notifier: ObjectValue
    error: Error
    request: Optional[Request] = None
    env: Optional[ObjectValue] = None

    def __post_init__(self):
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))

    def __hash__(self) -> int:
        return hash((
            self.version,
            frozenset(self.params.items()),
            self.notifier,
            self.error,
            self.request,
            self.env,
        ))

    @property
    def environment_name(self) -> Optional[str]:
        if self.env is None:
            return None
        name = self.env.text("environment_name")
        return name if name and name.strip() else None


def parse_notice(raw: Union[str, bytes]) -> Notice:
    """Create a notice from an airbrake XML document.

    Raises:
        InvalidNotice: the document is malformed or misses a required section
        UnsupportedVersion: the version attribute is not supported
    """
    notice_elem = _find_notice(raw)

    version = _parse_version(notice_elem)
    params = _parse_params(notice_elem)
    notifier = _parse_notifier(notice_elem)
    error = _parse_error(notice_elem)
    request = _parse_request(notice_elem)
    env = _optional_object(convert_element(notice_elem.find("server-environment")))

    logger.debug(
        "Notice parsed",
        version=version,
        error_class=error.class_name,
        frames=len(error.backtrace),
    )

    return Notice(
        version=version,
        params=params,
        notifier=notifier,
        error=error,
        request=request,
        env=env,
    )


def _find_notice(raw: Union[str, bytes]) -> Element:
    try:
        root = ET.fromstring(raw)
    except (ET.ParseError, DefusedXmlException) as e:
        raise InvalidNotice("malformed document") from e

    notice = root if root.tag == "notice" else root.find(".//notice")
    if notice is None or _is_empty(notice):
        raise InvalidNotice("no notice")
    return notice


def _is_empty(elem: Element) -> bool:
    return len(elem) == 0 and not elem.attrib and not (elem.text or "").strip()


def _parse_version(notice: Element) -> str:
    version = (notice.get("version") or "").strip()

    if not version:
        raise InvalidNotice("no version")
    if version not in SUPPORTED_API_VERSIONS:
        raise UnsupportedVersion(version)

    return version


def _parse_params(notice: Element) -> dict[str, str]:
    api_key = notice.find("api-key")
    if api_key is None:
        raise InvalidNotice("no or invalid api-key")

    try:
        params = decode_string_mapping("".join(api_key.itertext()))
    except EmbeddedPayloadError as e:
        raise InvalidNotice("no or invalid api-key") from e

    if not params:
        raise InvalidNotice("no or invalid api-key")

    return params


def _parse_notifier(notice: Element) -> ObjectValue:
    notifier = convert_element(notice.find("notifier"))

    if is_blank(notifier) or not isinstance(notifier, ObjectValue):
        raise InvalidNotice("no notifier")

    return notifier


def _parse_error(notice: Element) -> Error:
    error = convert_element(notice.find("error"))

    if is_blank(error) or not isinstance(error, ObjectValue):
        raise InvalidNotice("no error")

    message = error.text("message")
    if message is None or not message.strip():
        raise InvalidNotice("no message")

    class_name = error.text("class")

    return Error(
        message=message,
        class_name=class_name if class_name and class_name.strip() else None,
        backtrace=normalize_backtrace(_backtrace_lines(error.get("backtrace"))),
    )


def _backtrace_lines(backtrace: Optional[GenericValue]) -> Optional[GenericValue]:
    """Unwrap the <line> children of <backtrace>."""
    if isinstance(backtrace, ObjectValue) and "line" in backtrace:
        return backtrace["line"]
    if is_blank(backtrace):
        return None
    return backtrace


def _parse_request(notice: Element) -> Optional[Request]:
    request = _optional_object(convert_element(notice.find("request")))
    if request is None:
        return None

    session = _optional_object(request.get("session"))
    if session is None:
        return Request(fields=request.without("session"))

    return Request(
        fields=request.without("session"),
        session=Session(
            variables=session.without("log"),
            log=normalize_session_log(session.get("log")),
        ),
    )


def _optional_object(value: Optional[GenericValue]) -> Optional[ObjectValue]:
    if is_blank(value) or not isinstance(value, ObjectValue):
        return None
    return value
