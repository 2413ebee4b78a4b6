from __future__ import annotations

from typing import Optional

from openai import OpenAI

SYSTEM_PROMPT = "Responda em PT-BR, de forma curta e só com o conteúdo fornecido. Não invente."


class OpenAIRewriter:
    """Rephrases a baseline answer. The baseline is the only content the model sees."""

    def __init__(
        self,
        api_key: str,
        *,
        model: str = "gpt-4o-mini",
        temperature: float = 0.2,
        timeout: float = 20.0,
        client: Optional[OpenAI] = None,
    ) -> None:
        self.model = model
        self.temperature = temperature
        self._client = client or OpenAI(api_key=api_key, timeout=timeout)

    def __call__(self, baseline: str, question: str) -> str:
        response = self._client.chat.completions.create(
            model=self.model,
            temperature=self.temperature,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": f"PERGUNTA: {question}\n\nRESPOSTA_BASE:\n{baseline}"},
            ],
        )
        content = (response.choices[0].message.content or "").strip() if response.choices else ""
        return content or baseline
