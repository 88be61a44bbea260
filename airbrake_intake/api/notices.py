"""Airbrake notifier endpoint.

Accepts raw Airbrake v2.4 XML notices and answers with the identity used
for the report:

    <notice><id>9f0c1a2b...</id><issue-id>12</issue-id></notice>

Rejected documents get an empty 400 response, as Airbrake notifiers expect.
"""

import xml.etree.ElementTree as XML
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Request, Response

from airbrake_intake.core.errors import NoticeError, UnsupportedVersion
from airbrake_intake.services.notice_processor import NoticeProcessor, ProcessingResult

logger = structlog.get_logger()
router = APIRouter(prefix="/notifier_api/v2", tags=["Notices"])

XML_MEDIA_TYPE = "application/xml"

# Global instance
_notice_processor: Optional[NoticeProcessor] = None


def get_notice_processor() -> NoticeProcessor:
    """Get or create the global notice processor."""
    global _notice_processor
    if _notice_processor is None:
        _notice_processor = NoticeProcessor()
    return _notice_processor


def render_acknowledgement(result: ProcessingResult) -> bytes:
    """Render the XML answer for a processed notice."""
    root = XML.Element("notice")
    XML.SubElement(root, "id").text = result.fingerprint
    XML.SubElement(root, "issue-id").text = str(result.issue.id)
    return XML.tostring(root, encoding="utf-8", xml_declaration=True)


@router.post("/notices")
async def receive_notice(
    request: Request,
    processor: NoticeProcessor = Depends(get_notice_processor),
) -> Response:
    """Create or update the issue for an Airbrake notice."""
    body = await request.body()

    try:
        result = processor.process(body)
    except UnsupportedVersion as e:
        logger.warning("Notice rejected", reason="unsupported version", version=e.version)
        return Response(status_code=400)
    except NoticeError as e:
        logger.warning("Notice rejected", reason=str(e))
        return Response(status_code=400)

    logger.info(
        "Notice processed",
        fingerprint=result.fingerprint,
        issue_id=result.issue.id,
        created=result.created,
        reopened=result.reopened,
    )

    return Response(content=render_acknowledgement(result), media_type=XML_MEDIA_TYPE)
