"""Turn markdown analysis text into narration-friendly and display formats."""

import re

# Per-request character ceiling for speech synthesis
MAX_SPEECH_CHUNK = 3000

SENTENCE_PATTERN = re.compile(r"[^.!?]*[.!?]+|[^.!?]+\Z")


class ContentProcessor:
    """Process analysis markdown into speech text and display blocks."""

    def prepare_for_speech(self, text: str) -> str:
        """Strip markdown so the text reads naturally aloud.

        Bold/italic/heading/code markers are dropped, links keep their label,
        bullets become comma pauses and line breaks become sentence breaks.
        """
        cleaned = text.replace("**", "")
        cleaned = cleaned.replace("*", "")
        cleaned = re.sub(r"#{1,6}\s?", "", cleaned)
        cleaned = cleaned.replace("`", "")
        cleaned = re.sub(r"\[([^\]]+)\]\([^)]+\)", r"\1", cleaned)
        cleaned = re.sub(r"^\s*[-•]\s", ", ", cleaned, flags=re.MULTILINE)
        cleaned = re.sub(r"\n+", ". ", cleaned)
        return cleaned

    def split_sentences(self, text: str) -> list[str]:
        """Split text after sentence-ending punctuation, keeping every character."""
        return SENTENCE_PATTERN.findall(text)

    def chunk_for_speech(
        self, text: str, max_length: int = MAX_SPEECH_CHUNK
    ) -> list[str]:
        """Group sentences into contiguous chunks of at most max_length characters.

        A single sentence longer than max_length becomes its own chunk rather
        than being cut.
        """
        if len(text) <= max_length:
            return [text] if text.strip() else []

        chunks: list[str] = []
        current = ""
        for sentence in self.split_sentences(text):
            if current and len(current) + len(sentence) > max_length:
                if current.strip():
                    chunks.append(current)
                current = sentence
            else:
                current += sentence

        if current.strip():
            chunks.append(current)

        return chunks

    def split_blocks(self, text: str) -> list[str]:
        """Split analysis markdown into paragraph-level display blocks."""
        blocks = []
        for block in re.split(r"\n\s*\n", text):
            block = block.strip()
            if block:
                blocks.append(block)
        return blocks
