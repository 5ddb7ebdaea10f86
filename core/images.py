# =============================================================================
# core/images.py  —  Text-to-image via Hugging Face inference
# =============================================================================
#
# The only tool that needs a credential.  The token comes from ServerConfig
# (explicit value → HF_TOKEN), travels only in the Authorization header and
# never appears in a message or a log line.
#
# FLOW:
#   1. no token / blank prompt      → DomainError (before any network I/O)
#   2. POST {inputs, parameters} to the model endpoint (60 s budget)
#   3. raw bytes back → sniff the image type from its magic bytes
#   4. base64 encode → ImageContent
#
# Sniffing instead of trusting Content-Type: some providers answer 200 with
# a JSON error body.  If the bytes are not a known image, that is a
# MalformedResponse, not a broken picture.
# =============================================================================

import base64
from typing import Optional
from urllib.parse import urlsplit

from core import contracts as c
from core.config import CREDENTIAL_ENV_VAR
from core.errors import DomainError, ErrorKind, OrchestratorError
from core.http import IMAGE_TIMEOUT_MS
from core.models import ImageContent, InvocationResult
from core.registry import ToolContext, ToolDefinition

INFERENCE_STEPS = 5

_MAGIC_BYTES = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
)


def sniff_image_type(data: bytes) -> Optional[str]:
    """Return the MIME type for PNG/JPEG/GIF/WEBP bytes, else None."""
    for magic, mime in _MAGIC_BYTES:
        if data.startswith(magic):
            return mime
    if len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return None


async def generate_image_handler(args: dict, ctx: ToolContext) -> InvocationResult:
    if not ctx.config.has_credential:
        raise DomainError(
            f"Image generation is unavailable: the {CREDENTIAL_ENV_VAR} credential is not configured"
        )
    prompt = args["prompt"].strip()
    if not prompt:
        raise DomainError("The image prompt must not be empty")

    url = ctx.config.image_url
    body = await ctx.http.call(
        url,
        method="POST",
        headers={
            "Authorization": f"Bearer {ctx.config.hf_token}",
            "Accept": "image/png",
        },
        json_body={"inputs": prompt, "parameters": {"num_inference_steps": INFERENCE_STEPS}},
        timeout_ms=IMAGE_TIMEOUT_MS,
        expect="bytes",
    )

    mime_type = sniff_image_type(body)
    if mime_type is None:
        service = urlsplit(url).hostname or "image provider"
        raise OrchestratorError(
            ErrorKind.MALFORMED_RESPONSE, service, f"{service} did not return an image"
        )

    return InvocationResult(content=(
        ImageContent(
            data=base64.b64encode(body).decode("ascii"),
            mimeType=mime_type,
            annotations={"audience": ["user"], "priority": 0.9},
        ),
    ))


GENERATE_IMAGE = ToolDefinition(
    name="generate_image",
    description="Generate an image from a text prompt (FLUX.1-schnell via Hugging Face).",
    input_contract=c.InputContract(fields=(
        c.string("prompt", "Text prompt describing the image"),
    )),
    handler=generate_image_handler,
    output_contract=c.IMAGE_RESULT,
)
