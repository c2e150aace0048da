"""
Oracle Client
=============

Wraps the external text-generation service (Google Gemini) that produces
attention matrices for arbitrary sentences.

The oracle is treated as a black box: we send an instruction plus a JSON
response schema and get back a JSON document. Every way this can go wrong
is mapped onto one of three exceptions, which the synthesis engine turns
into degraded output:

- MissingCredential: no API key configured (no network call is made)
- OracleUnreachable: transport/API failure, timeouts
- OracleMalformedResponse: empty body, invalid JSON, wrong shape or range
"""

import logging
import math
from typing import Any, Dict, List, Optional, Protocol, Type, TypeVar

import numpy as np
from google import genai
from google.genai import types
from pydantic import BaseModel, StrictFloat, ValidationError, field_validator

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"


# =============================================================================
# Errors
# =============================================================================

class OracleError(Exception):
    """Base class for every oracle failure."""


class MissingCredential(OracleError):
    """No API key is configured."""


class OracleUnreachable(OracleError):
    """The service could not be reached or returned an API error."""


class OracleMalformedResponse(OracleError):
    """The service answered, but not with data we can use."""


# =============================================================================
# Response Schemas
# =============================================================================

# Sent to the service (OpenAPI subset understood by Gemini)
SELF_ATTENTION_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "matrix": {
            "type": "ARRAY",
            "items": {"type": "ARRAY", "items": {"type": "NUMBER"}},
        },
        "tokens": {"type": "ARRAY", "items": {"type": "STRING"}},
        "explanation": {"type": "STRING"},
    },
    "required": ["matrix", "explanation"],
}

CROSS_ATTENTION_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "source": {"type": "STRING", "description": "Frase em Português"},
        "target": {"type": "STRING", "description": "Tradução em Inglês"},
        "alignment": {
            "type": "ARRAY",
            "items": {"type": "ARRAY", "items": {"type": "NUMBER"}},
        },
    },
    "required": ["source", "target", "alignment"],
}


class SelfAttentionPayload(BaseModel):
    """Validated oracle answer for self-attention."""
    matrix: List[List[StrictFloat]]  # JSON true/false are not weights
    tokens: Optional[List[str]] = None
    explanation: str

    @field_validator("explanation")
    @classmethod
    def _explanation_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("explanation is empty")
        return value


class CrossAttentionPayload(BaseModel):
    """Validated oracle answer for cross-attention."""
    source: str
    target: str
    alignment: List[List[StrictFloat]]

    @field_validator("source", "target")
    @classmethod
    def _text_not_blank(cls, value: str) -> str:
        if not value.split():
            raise ValueError("sentence is empty")
        return value


PayloadT = TypeVar("PayloadT", bound=BaseModel)


def parse_payload(text: Optional[str], model: Type[PayloadT]) -> PayloadT:
    """Parse raw JSON text into `model`, raising OracleMalformedResponse."""
    if not text:
        raise OracleMalformedResponse("Empty response from oracle")
    try:
        return model.model_validate_json(text)
    except ValidationError as e:
        raise OracleMalformedResponse(f"Invalid {model.__name__}: {e}") from e


def as_matrix(rows: List[List[float]], n_rows: int, n_cols: int) -> np.ndarray:
    """
    Check that `rows` is an (n_rows x n_cols) grid of finite values in [0, 1].

    Returns:
        The rows as a float array
    """
    if len(rows) != n_rows or any(len(row) != n_cols for row in rows):
        shape = (len(rows), sorted({len(row) for row in rows}))
        raise OracleMalformedResponse(
            f"Expected a {n_rows}x{n_cols} matrix, got rows/cols {shape}"
        )
    for row in rows:
        for value in row:
            if not math.isfinite(value) or value < 0.0 or value > 1.0:
                raise OracleMalformedResponse(f"Matrix value out of range: {value}")
    return np.asarray(rows, dtype=float).reshape(n_rows, n_cols)


# =============================================================================
# Prompts
# =============================================================================

def self_attention_prompt(sentence: str) -> str:
    return f"""
      Analise as relações semânticas e sintáticas entre as palavras da seguinte frase em Português: "{sentence}".
      Imagine um mecanismo de auto-atenção (self-attention).
      Forneça uma matriz (N x N) onde N é o número de tokens separados por espaço ({len(sentence.split())}).
      A célula [i][j] deve representar o quanto a palavra na posição 'i' depende ou se relaciona com a palavra na posição 'j'.

      Destaque relações como:
      1. Correferência (pronomes -> nomes)
      2. Sujeito -> Verbo
      3. Adjetivo -> Substantivo

      Forneça também uma breve explicação EM PORTUGUÊS do Brasil sobre as conexões mais fortes.

      Retorne o formato JSON com:
      - matrix: array 2D de números (0-1)
      - tokens: array de strings (os tokens usados)
      - explanation: string (em português)
    """


def alignment_prompt(source: str, target: str) -> str:
    return f"""
      Atue como um mecanismo de Atenção Cruzada (Cross-Attention) em tradução automática (PT-BR para EN).
      Analise o alinhamento entre a frase fonte (PT): "{source}" e a frase alvo (EN): "{target}".
      Forneça uma matriz de alinhamento (Tamanho Alvo x Tamanho Fonte) onde os valores (0 a 1) representam o quanto a palavra em Inglês (Alvo) atende à palavra em Português (Fonte) para ser gerada.
      Considere as palavras separadas por espaço. Repita as frases nos campos source e target.
      Retorne JSON.
    """


def translation_prompt(source: str) -> str:
    return f"""
      Traduza a frase em Português do Brasil para o Inglês: "{source}".
      Atue como um mecanismo de Atenção Cruzada (Cross-Attention) e forneça uma matriz de alinhamento
      (Tamanho Alvo x Tamanho Fonte, palavras separadas por espaço) com valores de 0 a 1.
      Repita a frase original no campo source e a tradução no campo target.
      Retorne JSON.
    """


def invention_prompt() -> str:
    return """
      Gere uma frase complexa e inspiradora em Português do Brasil e sua tradução para o Inglês.
      A frase deve ser sobre tecnologia, futuro ou aprendizado.
      Forneça uma matriz de alinhamento (Tamanho Alvo x Tamanho Fonte) onde 1 significa que as palavras se alinham/traduzem.
      Retorne JSON.
    """


# =============================================================================
# Clients
# =============================================================================

class Oracle(Protocol):
    """Anything that turns (prompt, schema) into a JSON string."""

    async def generate(self, prompt: str, schema: Dict[str, Any]) -> str:
        ...


class GeminiOracle:
    """
    Oracle backed by the Gemini API via the google-genai SDK.

    The client is created lazily so that a missing key only fails when a
    query is made, and then as MissingCredential.

    Usage:
        oracle = GeminiOracle(api_key=os.environ.get("GEMINI_API_KEY"))
        text = await oracle.generate(prompt, SELF_ATTENTION_SCHEMA)
    """

    def __init__(self, api_key: Optional[str], model: str = DEFAULT_MODEL):
        self.api_key = api_key
        self.model = model
        self._client: Optional[genai.Client] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _get_client(self) -> genai.Client:
        if not self.api_key:
            raise MissingCredential("API key is missing")
        if self._client is None:
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def generate(self, prompt: str, schema: Dict[str, Any]) -> str:
        client = self._get_client()
        logger.debug(f"Querying {self.model} ({len(prompt)} chars)")

        try:
            response = await client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=schema,
                ),
            )
        except Exception as e:
            raise OracleUnreachable(f"Gemini request failed: {e}") from e

        text = response.text
        if not text:
            raise OracleMalformedResponse("No response from Gemini")
        return text
