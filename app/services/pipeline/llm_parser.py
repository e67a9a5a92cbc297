import json
import logging
import re
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as SchemaValidationError

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)

_CODE_FENCE_OPEN = re.compile(r'```(?:json)?\s*', re.IGNORECASE)


def clean_llm_json_output(raw_text: str) -> str:
    """Cleans LLM output to extract valid JSON."""
    if not raw_text:
        return ""

    # Remove markdown code blocks
    text = _CODE_FENCE_OPEN.sub('', raw_text)
    text = text.replace('```', '')

    try:
        json.loads(text)
        return text.strip()
    except json.JSONDecodeError:
        pass

    # Fallback: extract the outermost JSON object from surrounding prose
    start_idx = text.find('{')
    end_idx = text.rfind('}')
    if start_idx != -1 and end_idx != -1 and end_idx > start_idx:
        extracted = text[start_idx:end_idx + 1]
        try:
            json.loads(extracted)
            return extracted
        except json.JSONDecodeError:
            pass

    return text.strip()


def parse_llm_response(result: Any, schema_class: type[SchemaT]) -> SchemaT:
    """
    Parse LLM response and validate against schema.

    Raises:
        ValueError: If the response is not JSON or does not match the schema.
    """
    raw_content = result if isinstance(result, str) else str(result)

    try:
        cleaned_json = clean_llm_json_output(raw_content)
        data = json.loads(cleaned_json)
        return schema_class.model_validate(data)

    except (json.JSONDecodeError, SchemaValidationError) as e:
        logger.error(f"Error parsing {schema_class.__name__}: {e}")
        logger.error(f"Raw output (first 500 chars): {raw_content[:500]}...")
        raise ValueError(f"Failed to parse {schema_class.__name__}: {e}") from e
