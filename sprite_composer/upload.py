"""Upload collaborator.

Encodes a finished raster with the export collaborator and sends it as a
multipart form to the configured endpoint. Failures are surfaced to the caller
as :class:`UploadFailure`; there is no retry.
"""

import logging
from typing import Optional

import requests
from PIL import Image

from sprite_composer.components import ExportConfig, UploadConfig
from sprite_composer.errors import UploadFailure
from sprite_composer.renderer.export import MIME_TYPES, export_bytes

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


def upload_image(
    image: Image.Image,
    config: UploadConfig,
    export: Optional[ExportConfig] = None,
    session: Optional[requests.Session] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> requests.Response:
    """Upload ``image`` to ``config.endpoint``.

    Args:
        image (Image.Image): Finished raster.
        config (UploadConfig): Endpoint, method, headers and form fields.
        export (Optional[ExportConfig]): Encoding options; PNG by default.
        session (Optional[requests.Session]): Session to send with.
        timeout (float): Request timeout in seconds.

    Returns:
        requests.Response: The successful response.

    Raises:
        UploadFailure: If the request fails or the endpoint answers non-2xx.
        ExportFailure: If the image cannot be encoded.
    """
    export = export or ExportConfig()
    data = export_bytes(image, export)
    mime_type = MIME_TYPES[export.format]
    filename = f"avatar.{mime_type.split('/')[1]}"

    sender = session or requests.Session()
    try:
        response = sender.request(
            config.method.value,
            config.endpoint,
            headers=dict(config.headers),
            files={config.field_name: (filename, data, mime_type)},
            data=dict(config.additional_data),
            timeout=timeout,
        )
    except requests.exceptions.RequestException as e:
        log.error("Upload to %s failed: %s", config.endpoint, e)
        raise UploadFailure(f"Upload failed: {e}") from e
    finally:
        if session is None:
            sender.close()

    if not response.ok:
        log.error("Upload to %s rejected: %s %s", config.endpoint, response.status_code, response.reason)
        raise UploadFailure(f"Upload failed: {response.reason}", status_code=response.status_code)
    log.debug("Uploaded %d bytes to %s", len(data), config.endpoint)
    return response
