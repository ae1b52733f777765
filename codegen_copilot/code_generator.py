import logging

from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate
from langchain_openai import ChatOpenAI

from .config import Settings
from .errors import GenerationError

# Logging setup
logger = logging.getLogger(__name__)

INSTRUCTION = (
    "Generate {language} code for: {prompt}. "
    "Return ONLY the raw code. Do not include markdown formatting, "
    "backticks, or any explanations."
)


# Models sometimes wrap the answer in a ```lang ... ``` block anyway
def strip_code_fences(text: str) -> str:
    code = text.strip()
    if code.startswith("```"):
        newline = code.find("\n")
        code = code[newline + 1:] if newline != -1 else code[3:]
    if code.endswith("```"):
        code = code[:-3]
    return code.strip()


# Single request/response call to an OpenAI-compatible chat model
class CodeGenerator:
    def __init__(
        self,
        model: str,
        api_key: str,
        api_base: str | None = None,
        temperature: float = 0.2
    ):
        self._model = model
        llm = ChatOpenAI(
            model=model,
            api_key=api_key,
            base_url=api_base,
            temperature=temperature
        )
        prompt = ChatPromptTemplate.from_messages([("human", INSTRUCTION)])
        self._chain = prompt | llm | StrOutputParser()

    @classmethod
    def from_settings(cls, settings: Settings) -> "CodeGenerator":
        return cls(
            model=settings.model,
            api_key=settings.openai_api_key,
            api_base=settings.openai_api_base
        )

    async def generate(self, language: str, prompt: str) -> str:
        logger.info(f"Requesting {language} code from model {self._model}")
        try:
            reply = await self._chain.ainvoke(
                {"language": language, "prompt": prompt}
            )
        except Exception as e:
            logger.exception("Code generation call failed")
            raise GenerationError(f"Code generation failed: {e}") from e

        code = strip_code_fences(reply or "")
        if not code:
            raise GenerationError("No content returned from the model")
        return code
