from openai import OpenAI, OpenAIError

from report_ingest.commons.errors import ModelCallFailure
from report_ingest.commons.logger import logger
from report_ingest.commons.types import ModelCfg

REPORT_PROMPT = """
You are a medical report parser.

From the PDF text below, extract all test results as an array of JSON objects with the following fields:
- test_type (string)
- value (number or string)
- maxlimit (number)
- minlimit (number)
- unit (string or null)
- timestamp (string in original format or ISO)

Instructions:
- The text may contain many test results — extract ALL of them.
- If a field is missing for a test, set its value to null.
- Return ONLY the raw JSON array (no Markdown, no comments, no explanation).
- Do NOT wrap the response in ```json or any code block.
- If test does not have a maxlimit, minlimit skip it.
Example format:
[
  {
    "test_type": "HAEMOGLOBIN (Hb)",
    "value": 14.9,
    "minlimit": 17.0,
    "maxlimit": 18.0,
    "unit": "gm/dL",
    "timestamp": "10/Apr/2025 05:30PM"
  }
]

PDF Text:
"""


def build_prompt(text: str) -> str:
    return f"{REPORT_PROMPT}{text}\n"


class CompletionClient:
    """Cliente de chat completions (deployment Azure OpenAI vía SDK openai)."""

    def __init__(self, cfg: ModelCfg, client=None):
        self.model = cfg.deployment
        self.client = client or OpenAI(
            api_key=cfg.api_key,
            base_url=cfg.endpoint,
            default_query={"api-version": cfg.api_version},
            default_headers={"api-key": cfg.api_key},
        )

    def complete(self, prompt: str) -> str:
        try:
            completion = self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=0,
            )
        except OpenAIError as ex:
            raise ModelCallFailure(f"Fallo llamando al modelo {self.model}: {ex}") from ex

        content = ""
        if completion.choices:
            content = (completion.choices[0].message.content or "").strip()
        logger.debug(f"Respuesta del modelo ({len(content)} chars): {content[:500]}")
        return content or "{}"
