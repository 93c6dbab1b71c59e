import asyncio
import logging
from typing import List, Optional

from openai import AsyncOpenAI, OpenAIError

from com.furia.app.config.config import Config
from com.furia.app.exceptions.exceptions import ClassifierUnavailable
from com.furia.app.services.verification_system.identity_verification.identity_verification_schema import ImagePayload

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an identity verification assistant. You compare an official identity document "
    "with a selfie and answer strictly with a single JSON object, without markdown."
)


class VisionClassifierManager:
    """Client for the generative-AI vision endpoint that compares the two images"""

    def __init__(self, client: Optional[AsyncOpenAI] = None):
        self.config = Config()
        self.model = self.config.openai_model
        self.timeout = self.config.classifier_timeout
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            if not self.config.openai_api_key:
                logger.error("OpenAI API key not configured")
                raise ClassifierUnavailable(detail="OpenAI API key not configured")
            # Retries disabled so the request never outlives self.timeout
            self._client = AsyncOpenAI(
                api_key=self.config.openai_api_key,
                timeout=self.timeout,
                max_retries=0
            )
        return self._client

    def _build_messages(self, prompt: str, images: List[ImagePayload]) -> List[dict]:
        content = [{"type": "text", "text": prompt}]
        for image in images:
            content.append({
                "type": "image_url",
                "image_url": {"url": f"data:{image.mime_type};base64,{image.data}"}
            })
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": content}
        ]

    async def classify(self, prompt: str, images: List[ImagePayload]) -> str:
        """Send the prompt and images to the model and return its raw text answer"""
        client = self.client
        logger.info(f"Sending {len(images)} images to vision model {self.model}")

        try:
            response = await asyncio.wait_for(
                client.chat.completions.create(
                    model=self.model,
                    messages=self._build_messages(prompt, images),
                    response_format={"type": "json_object"},
                    temperature=0,
                    max_tokens=1024
                ),
                timeout=self.timeout
            )
        except asyncio.TimeoutError:
            logger.error(f"Vision model did not answer within {self.timeout}s")
            raise ClassifierUnavailable(detail=f"Vision classifier timed out after {self.timeout}s")
        except OpenAIError as e:
            logger.error(f"OpenAI API error: {str(e)}")
            raise ClassifierUnavailable(detail=f"OpenAI API error: {str(e)}")

        if not response.choices or not response.choices[0].message.content:
            logger.error("Vision model returned an empty response")
            raise ClassifierUnavailable(detail="Vision classifier returned an empty response")

        return response.choices[0].message.content.strip()
