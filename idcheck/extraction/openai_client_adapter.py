import httpx
import openai

from idcheck.extraction.client_base import BaseExtractionClient
from idcheck.extraction.exceptions import (
    ExtractionError,
    ExtractionFailed,
    ExtractionTimeout,
    ExtractionUnavailable,
)


class OpenAIClientAdapter(BaseExtractionClient):
    """Extraction client built on an OpenAI-compatible vision chat API."""

    def __init__(
        self,
        *,
        api_key: str,
        timeout_seconds: int,
        base_url: str | None = None,
    ) -> None:
        # Retries are owned by the pipeline's retry policy.
        self._client = openai.OpenAI(
            api_key=api_key,
            timeout=timeout_seconds,
            base_url=base_url,
            max_retries=0,
        )

    def create_completion(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
        image_url: str,
        json_schema: dict[str, object],
    ) -> str:
        try:
            response = self._client.chat.completions.create(
                model=model,
                temperature=temperature,
                response_format={
                    "type": "json_schema",
                    "json_schema": {
                        "name": "identity_document",
                        "strict": True,
                        "schema": json_schema,
                    },
                },
                messages=[
                    {"role": "system", "content": system_prompt},
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": user_prompt},
                            {"type": "image_url", "image_url": {"url": image_url}},
                        ],
                    },
                ],
            )
        except (openai.APITimeoutError, httpx.TimeoutException) as exc:
            raise ExtractionTimeout(f"Extraction provider timed out: {exc}") from exc
        except openai.RateLimitError as exc:
            raise ExtractionUnavailable(f"Extraction provider throttled: {exc}") from exc
        except (openai.APIConnectionError, httpx.ConnectError) as exc:
            raise ExtractionUnavailable(
                f"Extraction provider network error: {exc}"
            ) from exc
        except openai.InternalServerError as exc:
            raise ExtractionUnavailable(f"Extraction provider error: {exc}") from exc
        except (openai.BadRequestError, openai.UnprocessableEntityError) as exc:
            # Provider messages can echo the presigned URL; keep the reason generic.
            raise ExtractionFailed(
                f"Document rejected by provider (HTTP {exc.status_code})"
            ) from exc
        except openai.APIError as exc:
            raise ExtractionError(f"Extraction provider API error: {exc}") from exc

        if not response.choices:
            raise ExtractionError("Provider returned no choices")
        content = response.choices[0].message.content
        if content is None:
            raise ExtractionError("Provider returned empty response")
        return content
