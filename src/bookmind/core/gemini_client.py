"""Chapter identification, analysis, narration and slides using Gemini."""

import logging

import httpx
from google import genai
from google.genai import errors, types
from pydantic import TypeAdapter, ValidationError

from bookmind.core.content_processor import MAX_SPEECH_CHUNK, ContentProcessor
from bookmind.models.analysis import AnalysisType, SlideImage
from bookmind.models.book import Chapter

log = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"

# Only the beginning of the text is needed to find the table of contents
IDENTIFY_TEXT_LIMIT = 60_000

# Below this, extracted chapter text is not worth sending on its own
MIN_ANALYSIS_TEXT = 100

SLIDE_EXCERPT_CHARS = 500
SLIDE_ASPECT_RATIO = "16:9"


class GeminiError(Exception):
    """Error from the Gemini API or a malformed Gemini response."""

    def __init__(self, error_type: str, message: str, code: int | None = None):
        self.error_type = error_type
        self.message = message
        self.code = code
        super().__init__(f"{error_type}: {message}")


class InsufficientContentError(ValueError):
    """Neither chapter text nor document bytes are available."""


IDENTIFY_VISUAL_PROMPT = """Analyze this PDF document. Look at the Table of Contents and the initial pages to identify the main chapters.
If there is no explicit Table of Contents, scan the document structure to identify logical chapter divisions."""

IDENTIFY_TEXT_PROMPT = """Analyze the beginning of this book (Table of Contents and initial pages) and identify the main chapters.

Text Context:
{text_context}"""

IDENTIFY_OUTPUT_PROMPT = "Return a list of chapters with their number, exact title found in the text, and a very brief description inferred from the title or context."

ANALYST_SYSTEM_INSTRUCTION = "You are an expert literary analyst and educational assistant."

ANALYSIS_PROMPTS: dict[AnalysisType, str] = {
    AnalysisType.STANDARD: "Provide a standard, comprehensive summary of the chapter. Keep it clear, concise, and easy to read.",
    AnalysisType.DETAILED: """Provide a detailed analysis including:
1. Key Concepts & Main Ideas (Bullet points)
2. Detailed Summary of arguments
3. Significant Examples mentioned
4. Core Conclusions""",
    AnalysisType.INSIGHTS: """Focus on insights and application:
1. Key Insights (What is the hidden meaning?)
2. Practical Applications (How can this be used?)
3. Connections to other disciplines or modern context
4. Thought-provoking quotes""",
    AnalysisType.CRITICAL: """Provide a critical review:
1. Executive Summary
2. Strengths of the argument
3. Weaknesses or Logical Gaps
4. Open Questions for further research""",
}

ANALYZE_TEXT_PROMPT = """Analyze the content for Chapter: "{chapter_title}".

{analysis_prompt}

Text Content:
{chapter_text}"""

ANALYZE_VISUAL_PROMPT = """I am providing the full PDF of the book.
1. LOCATE the chapter titled "{chapter_title}".
2. Read that chapter using your vision/OCR capabilities (ignoring other chapters).
3. Perform the following analysis:

{analysis_prompt}"""

SLIDE_PROMPT = """Create a high-quality, 16:9 infographic-style presentation slide for a book chapter titled "{chapter_title}".
The visual should abstractly represent the following key themes from the chapter:
{excerpt}...

Style: Professional, minimal text, vector art or high-quality illustration, educational, clean background."""

CHAPTER_LIST_SCHEMA = types.Schema(
    type=types.Type.ARRAY,
    items=types.Schema(
        type=types.Type.OBJECT,
        properties={
            "number": types.Schema(
                type=types.Type.STRING,
                description="Chapter number (e.g., '1', 'I', 'One')",
            ),
            "title": types.Schema(
                type=types.Type.STRING,
                description="Exact title of the chapter",
            ),
            "description": types.Schema(
                type=types.Type.STRING,
                description="Brief description of what this chapter might be about (1 sentence)",
            ),
        },
        required=["number", "title", "description"],
    ),
)

_chapter_list_adapter = TypeAdapter(list[Chapter])


class BookAnalyst:
    """Talk to Gemini about a book."""

    DEFAULT_MODEL = "gemini-2.0-flash-exp"
    DEFAULT_TTS_MODEL = "gemini-2.5-flash-preview-tts"
    DEFAULT_IMAGE_MODEL = "gemini-2.5-flash-image"
    DEFAULT_VOICE = "Kore"
    TEMPERATURE = 0.3

    def __init__(
        self,
        client: "genai.Client | None" = None,
        model: str = DEFAULT_MODEL,
        tts_model: str = DEFAULT_TTS_MODEL,
        image_model: str = DEFAULT_IMAGE_MODEL,
        voice: str = DEFAULT_VOICE,
        max_speech_chunk: int = MAX_SPEECH_CHUNK,
    ):
        self._client = client
        self.model = model
        self.tts_model = tts_model
        self.image_model = image_model
        self.voice = voice
        self.max_speech_chunk = max_speech_chunk
        self.processor = ContentProcessor()

    @property
    def client(self) -> "genai.Client":
        """Gemini client, created on first use so the API key is read lazily."""
        if self._client is None:
            self._client = genai.Client()
        return self._client

    async def _generate(
        self,
        model: str,
        parts: list[types.Part],
        config: types.GenerateContentConfig | None = None,
    ) -> types.GenerateContentResponse:
        """Send one request and convert API failures into GeminiError."""
        try:
            return await self.client.aio.models.generate_content(
                model=model,
                contents=[types.Content(role="user", parts=parts)],
                config=config,
            )
        except errors.APIError as e:
            log.error(f"Gemini request to {model} failed: {e}")
            raise GeminiError("API_ERROR", e.message or str(e), e.code)
        except httpx.HTTPError as e:
            log.error(f"Gemini request to {model} could not be sent: {e}")
            raise GeminiError("API_ERROR", str(e) or type(e).__name__)

    def _build_identify_parts(
        self, text: str | None, document: bytes | None
    ) -> list[types.Part]:
        parts: list[types.Part] = []
        if document:
            parts.append(types.Part.from_bytes(data=document, mime_type=PDF_MIME_TYPE))
            parts.append(types.Part.from_text(text=IDENTIFY_VISUAL_PROMPT))
        elif text:
            text_context = text[:IDENTIFY_TEXT_LIMIT]
            parts.append(
                types.Part.from_text(
                    text=IDENTIFY_TEXT_PROMPT.format(text_context=text_context)
                )
            )
        else:
            raise InsufficientContentError(
                "Insufficient content to identify chapters. Neither text nor PDF data provided."
            )
        parts.append(types.Part.from_text(text=IDENTIFY_OUTPUT_PROMPT))
        return parts

    async def identify_chapters(
        self, text: str | None, document: bytes | None = None
    ) -> list[Chapter]:
        """Identify chapters from document bytes (visual mode) or leading text."""
        parts = self._build_identify_parts(text, document)
        config = types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=CHAPTER_LIST_SCHEMA,
        )

        response = await self._generate(self.model, parts, config)
        if not response.text:
            raise GeminiError("EMPTY_RESPONSE", "No data returned from AI")

        try:
            chapters = _chapter_list_adapter.validate_json(response.text)
        except ValidationError as e:
            log.error(f"Malformed chapter list: {e}")
            raise GeminiError("INVALID_RESPONSE", "Chapter list did not match the expected format")

        if not chapters:
            raise GeminiError("NO_CHAPTERS", "No chapters identified")

        log.info(f"Identified {len(chapters)} chapters")
        return chapters

    def _build_analysis_parts(
        self,
        chapter_title: str,
        chapter_text: str | None,
        analysis_type: AnalysisType,
        document: bytes | None,
    ) -> list[types.Part]:
        analysis_prompt = ANALYSIS_PROMPTS[analysis_type]

        if chapter_text and len(chapter_text) >= MIN_ANALYSIS_TEXT:
            prompt = ANALYZE_TEXT_PROMPT.format(
                chapter_title=chapter_title,
                analysis_prompt=analysis_prompt,
                chapter_text=chapter_text,
            )
            return [types.Part.from_text(text=prompt)]

        if document:
            prompt = ANALYZE_VISUAL_PROMPT.format(
                chapter_title=chapter_title,
                analysis_prompt=analysis_prompt,
            )
            return [
                types.Part.from_bytes(data=document, mime_type=PDF_MIME_TYPE),
                types.Part.from_text(text=prompt),
            ]

        raise InsufficientContentError(
            "Insufficient content to analyze. Neither text nor PDF data provided."
        )

    async def analyze_chapter(
        self,
        chapter_title: str,
        chapter_text: str | None,
        analysis_type: AnalysisType,
        document: bytes | None = None,
    ) -> str:
        """Analyze one chapter in the requested style and return markdown."""
        parts = self._build_analysis_parts(
            chapter_title, chapter_text, analysis_type, document
        )
        config = types.GenerateContentConfig(
            system_instruction=ANALYST_SYSTEM_INSTRUCTION,
            temperature=self.TEMPERATURE,
        )

        response = await self._generate(self.model, parts, config)
        if not response.text:
            raise GeminiError("EMPTY_RESPONSE", "Could not generate summary.")
        return response.text

    async def synthesize_speech(self, text: str) -> bytes:
        """Narrate text and return raw 16-bit mono 24 kHz PCM bytes.

        Long text is requested sentence-chunk by sentence-chunk, strictly in
        order, and the PCM of every chunk is concatenated.
        """
        speech_text = self.processor.prepare_for_speech(text)
        chunks = self.processor.chunk_for_speech(speech_text, self.max_speech_chunk)
        if not chunks:
            raise GeminiError("NO_AUDIO", "Nothing to narrate")

        config = types.GenerateContentConfig(
            response_modalities=["AUDIO"],
            speech_config=types.SpeechConfig(
                voice_config=types.VoiceConfig(
                    prebuilt_voice_config=types.PrebuiltVoiceConfig(
                        voice_name=self.voice
                    )
                )
            ),
        )

        segments: list[bytes] = []
        for i, chunk in enumerate(chunks, 1):
            log.debug(f"Synthesizing speech chunk {i}/{len(chunks)} ({len(chunk)} chars)")
            response = await self._generate(
                self.tts_model, [types.Part.from_text(text=chunk)], config
            )
            audio = _first_inline_data(response)
            if audio is None:
                raise GeminiError("NO_AUDIO", f"No audio generated for chunk {i}")
            segments.append(audio.data)

        return b"".join(segments)

    async def generate_slide(self, chapter_title: str, analysis_text: str) -> SlideImage:
        """Render an illustrative 16:9 slide for a chapter analysis."""
        prompt = SLIDE_PROMPT.format(
            chapter_title=chapter_title,
            excerpt=analysis_text[:SLIDE_EXCERPT_CHARS],
        )
        config = types.GenerateContentConfig(
            image_config=types.ImageConfig(aspect_ratio=SLIDE_ASPECT_RATIO),
        )

        response = await self._generate(
            self.image_model, [types.Part.from_text(text=prompt)], config
        )
        image = _first_inline_data(response)
        if image is None:
            raise GeminiError("NO_IMAGE", "No image generated")

        return SlideImage(data=image.data, mime_type=image.mime_type or "image/png")


def _first_inline_data(response: types.GenerateContentResponse) -> types.Blob | None:
    """Find the first non-empty inline data part across all candidates."""
    for candidate in response.candidates or []:
        content = candidate.content
        if content is None:
            continue
        for part in content.parts or []:
            if part.inline_data and part.inline_data.data:
                return part.inline_data
    return None
