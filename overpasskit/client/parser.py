"""
Overpass response parser

Decodes raw response bodies into OverpassResponse models
"""

import json
from typing import Any, Dict, Union

from loguru import logger
from pydantic import ValidationError

from ..exceptions import InvalidResponseError
from ..models import OverpassResponse


# Characters of the body included in decode failure logs
SNIPPET_LENGTH = 500


class OverpassResponseParser:
    """Parses Overpass API responses"""

    @staticmethod
    def parse_data(data: Dict[str, Any]) -> OverpassResponse:
        """
        Validate an already decoded JSON object

        Raises:
            InvalidResponseError: If data does not match the response schema
        """
        if not isinstance(data, dict):
            raise InvalidResponseError(f"Expected a JSON object, got {type(data).__name__}")
        try:
            return OverpassResponse.model_validate(data)
        except ValidationError as e:
            raise InvalidResponseError(f"Response does not match the Overpass schema: {e.error_count()} errors") from e

    def parse(self, body: Union[bytes, str]) -> OverpassResponse:
        """
        Decode a raw response body

        An empty element list is a valid "no results" response.

        Raises:
            InvalidResponseError: If the body is not JSON or not a valid response
        """
        if isinstance(body, bytes):
            try:
                text = body.decode("utf-8")
            except UnicodeDecodeError as e:
                # Lossy copy for the log only
                self._log_decode_failure(body.decode("utf-8", errors="replace"), e)
                raise InvalidResponseError(f"Response body is not valid UTF-8: {e}") from e
        else:
            text = body

        try:
            data = json.loads(text)
            response = self.parse_data(data)
        except (ValueError, InvalidResponseError) as e:
            self._log_decode_failure(text, e)
            if isinstance(e, InvalidResponseError):
                raise
            raise InvalidResponseError(f"Response body is not valid JSON: {e}") from e

        if response.is_empty:
            if response.remark:
                logger.info(f"Empty response with remark: {response.remark}")
            else:
                logger.info("Empty response - no elements found in this area")

        return response

    def _log_decode_failure(self, text: str, error: Exception) -> None:
        logger.error(
            f"JSON decode failed. Error: {error}. Response length: {len(text)} characters. "
            f"Response snippet: {text[:SNIPPET_LENGTH]}"
        )
        if text.endswith("...") or len(text) < 100:
            logger.error("Response appears to be truncated or very short")
        if "runtime error" in text:
            logger.error("Overpass API returned a runtime error")
