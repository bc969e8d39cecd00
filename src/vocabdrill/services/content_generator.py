"""Content generation service using the OpenAI chat completions API."""
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from openai import OpenAI, OpenAIError

from vocabdrill.config import PERSONS, TENSES, ContentSettings, settings
from vocabdrill.exceptions import ContentGenerationError
from vocabdrill.models.models import ItemKind

logger = logging.getLogger(__name__)

WORD_MAX_TOKENS = 200
VERB_MAX_TOKENS = 800
VERB_EXAMPLES_MAX_TOKENS = 2000


@dataclass
class GeneratedForm:
    """One conjugated form of a verb."""
    tense: str
    person: int  # 1-6
    form: str
    translation: str = ""
    example: str = ""
    example_translation: str = ""


@dataclass
class GeneratedWord:
    """Translation and examples generated for a new word."""
    source_text: str
    kind: ItemKind
    translation: str
    article: Optional[str] = None
    example: str = ""
    example_translation: str = ""
    forms: List[GeneratedForm] = field(default_factory=list)


class ContentGenerator:
    """Service for generating translations, conjugations and examples."""

    def __init__(self, client: Optional[OpenAI] = None, content: Optional[ContentSettings] = None):
        self.content = content or settings.content
        self._client = client

    @property
    def client(self) -> OpenAI:
        """Get or create the OpenAI client."""
        if self._client is None:
            if not self.content.api_key:
                raise ContentGenerationError("OPENAI_API_KEY is required to generate word content")
            self._client = OpenAI(api_key=self.content.api_key)
        return self._client

    def _complete_json(self, prompt: str, max_tokens: int) -> Dict[str, Any]:
        """Send a prompt and parse the JSON object in the reply."""
        try:
            completion = self.client.chat.completions.create(
                model=self.content.model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=max_tokens,
                temperature=self.content.temperature,
                response_format={"type": "json_object"},
            )
            text = completion.choices[0].message.content or ""
            text = re.sub(r"```(?:json)?", "", text).strip()
            return json.loads(text)
        except OpenAIError as e:
            logger.error(f"OpenAI request failed: {e}")
            raise ContentGenerationError(f"OpenAI request failed: {e}") from e
        except (json.JSONDecodeError, IndexError, AttributeError) as e:
            logger.error(f"Could not parse OpenAI reply: {e}")
            raise ContentGenerationError(f"Invalid reply from OpenAI: {e}") from e

    def _word_prompt(self, source_text: str, kind: ItemKind) -> str:
        source, target = self.content.source_language, self.content.target_language
        if kind == ItemKind.VERB:
            return (
                f'Translate {source} verb "{source_text}" to {target}. Return JSON:\n'
                "{\n"
                f'  "word": "{source} word",\n'
                f'  "translation": "{target} infinitive",\n'
                '  "forms": {\n'
                '    "present": ["yo", "tú", "él/ella", "nosotros", "vosotros", "ellos/ellas"],\n'
                '    "past": ["yo (pretérito indefinido)", "tú", "él/ella", "nosotros", "vosotros", "ellos/ellas"],\n'
                '    "future": ["yo", "tú", "él/ella", "nosotros", "vosotros", "ellos/ellas"]\n'
                "  }\n"
                "}"
            )
        article = ',\n  "article": "el/la/los/las"' if kind == ItemKind.NOUN else ""
        return (
            f'Translate {source} {kind.value} "{source_text}" to {target}. Return JSON:\n'
            "{\n"
            f'  "word": "{source} word",\n'
            f'  "translation": "{target} word"{article}\n'
            "}"
        )

    def _examples_prompt(self, source_text: str, kind: ItemKind, data: Dict[str, Any]) -> str:
        source, target = self.content.source_language, self.content.target_language
        translation = data.get("translation", "")
        if kind == ItemKind.VERB:
            return (
                f'For {target} verb "{translation}" ({source}: {source_text}), generate an example '
                "sentence for EACH conjugation form. Return JSON:\n"
                "{\n"
                '  "forms_examples": [\n'
                f'    {{"tense": "present", "person": 1, "translation_form": "{source} translation of this form", '
                f'"example": "{target} sentence using the form", "example_translation": "{source} translation"}},\n'
                "    ... (all 18 forms: present 1-6, past 1-6, future 1-6)\n"
                "  ]\n"
                "}"
            )
        article = f"{data['article']} " if data.get("article") else ""
        return (
            f'For {target} {kind.value} "{article}{translation}" ({source}: {source_text}), '
            "generate one example sentence. Return JSON:\n"
            "{\n"
            f'  "example": "{target} sentence using the word",\n'
            f'  "example_translation": "{source} translation"\n'
            "}"
        )

    def generate_word_data(self, source_text: str, kind: ItemKind) -> Dict[str, Any]:
        """Generate the translation (and conjugations for verbs) of a word."""
        kind = ItemKind(kind)
        max_tokens = VERB_MAX_TOKENS if kind == ItemKind.VERB else WORD_MAX_TOKENS
        data = self._complete_json(self._word_prompt(source_text, kind), max_tokens)
        if not data.get("translation"):
            raise ContentGenerationError(f"No translation generated for {source_text!r}")
        logger.info(f"Translation generated for word: {source_text}, translation: {data['translation']}")
        return data

    def generate_examples(self, source_text: str, kind: ItemKind, data: Dict[str, Any]) -> Dict[str, Any]:
        """Generate example sentences for a translated word."""
        kind = ItemKind(kind)
        max_tokens = VERB_EXAMPLES_MAX_TOKENS if kind == ItemKind.VERB else WORD_MAX_TOKENS
        return self._complete_json(self._examples_prompt(source_text, kind, data), max_tokens)

    def generate_word(self, source_text: str, kind: ItemKind) -> GeneratedWord:
        """Generate everything needed to store a new word."""
        kind = ItemKind(kind)
        if kind == ItemKind.VERB_FORM:
            raise ContentGenerationError("Verb forms are generated together with their verb")

        data = self.generate_word_data(source_text, kind)
        examples = self.generate_examples(source_text, kind, data)
        word = GeneratedWord(
            source_text=source_text,
            kind=kind,
            translation=data["translation"],
            article=data.get("article") if kind == ItemKind.NOUN else None,
        )

        if kind == ItemKind.VERB:
            word.forms = self._combine_forms(data.get("forms") or {}, examples.get("forms_examples") or [])
            logger.info(f"Generated {len(word.forms)} forms for verb: {source_text}")
        else:
            word.example = examples.get("example", "")
            word.example_translation = examples.get("example_translation") or examples.get("example_pl", "")
        return word

    @staticmethod
    def _combine_forms(forms: Dict[str, List[str]], forms_examples: List[Dict[str, Any]]) -> List[GeneratedForm]:
        """Attach the generated examples to the conjugation table."""
        examples = {
            (example.get("tense"), int(example.get("person", 0))): example
            for example in forms_examples
            if isinstance(example, dict)
        }
        combined = []
        for tense in TENSES:
            for index, form in enumerate((forms.get(tense) or [])[:len(PERSONS)]):
                if not form:
                    continue
                person = index + 1
                example = examples.get((tense, person), {})
                combined.append(GeneratedForm(
                    tense=tense,
                    person=person,
                    form=form,
                    translation=example.get("translation_form", ""),
                    example=example.get("example", ""),
                    example_translation=example.get("example_translation") or example.get("example_pl", ""),
                ))
        return combined
