"""Chat-completion HTTP client used by the transaction classifier"""

import httpx
from typing import Optional
from finia_gateway.domain.exceptions import ClassifierAPIError


class ChatCompletionClient:
    """Client for an OpenAI-compatible /chat/completions endpoint"""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        model: str,
        timeout: float,
        temperature: float = 0.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.temperature = temperature
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Authorization": f"Bearer {api_key}"},
            timeout=timeout,
            transport=transport,
        )

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        """
        Run one chat completion with a system and a user turn.

        Raises:
            ClassifierAPIError: On timeout, network or HTTP errors, or a malformed response
        """
        try:
            response = await self._client.post(
                "/chat/completions",
                json={
                    "model": self.model,
                    "temperature": self.temperature,
                    "messages": [
                        {"role": "system", "content": system_prompt},
                        {"role": "user", "content": user_prompt},
                    ],
                },
            )
            response.raise_for_status()
            data = response.json()
            content = data["choices"][0]["message"]["content"]

        except httpx.TimeoutException as e:
            raise ClassifierAPIError(f"Classifier API timeout after {self.timeout}s") from e
        except httpx.HTTPStatusError as e:
            raise ClassifierAPIError(f"Classifier API error: {e.response.status_code}") from e
        except httpx.RequestError as e:
            raise ClassifierAPIError(f"Classifier API unreachable: {e.__class__.__name__}") from e
        except (KeyError, IndexError, ValueError, TypeError) as e:
            raise ClassifierAPIError(f"Invalid response from classifier API: {e}") from e

        if not isinstance(content, str):
            raise ClassifierAPIError("Classifier API returned no message content")
        return content

    async def aclose(self) -> None:
        await self._client.aclose()
