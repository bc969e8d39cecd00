"""Tests for exercises."""
import random

import pytest

from vocabdrill.models.models import ItemKind
from vocabdrill.services.exercises import (
    BLANK,
    TypedAnswerExercise,
    VerbFormChoiceExercise,
    blank_out,
    build_verb_options,
    get_exercise_class,
)


def test_blank_out_is_case_insensitive():
    """Test that every occurrence is blanked regardless of case."""
    assert blank_out("El perro y el Perro", "perro") == f"El {BLANK} y el {BLANK}"


def test_blank_out_escapes_special_characters():
    """Test that regex metacharacters in the target are literal."""
    assert blank_out("¿Qué (es) esto?", "(es)") == f"¿Qué {BLANK} esto?"
    assert blank_out("a.b axb", "a.b") == f"{BLANK} axb"


def test_blank_out_without_sentence():
    """Test that a missing sentence gives an empty question."""
    assert blank_out(None, "perro") == ""
    assert blank_out("Hola", "") == "Hola"


def test_exercise_class_for_kinds(make_item, make_verb, repository):
    """Test that verb forms get multiple choice and other kinds free text."""
    noun = make_item()
    verb = make_verb()
    form = repository.list_verb_forms(verb.id)[0]

    assert get_exercise_class(noun) is TypedAnswerExercise
    assert get_exercise_class(form) is VerbFormChoiceExercise


def test_typed_answer_request(make_item, repository):
    """Test the fill-in-the-blank request for a noun."""
    item = make_item(target_text="perro", article="el", example_sentence="Veo el perro.")
    request = TypedAnswerExercise(repository).create_request(item)

    assert request.answer == "el perro"
    assert request.sentence == f"Veo {BLANK}."
    assert request.hint == item.example_translation
    assert request.expects_text
    assert request.options == []


def test_typed_answer_check_uses_validator(make_item, repository):
    """Test that the typed exercise accepts the alternative article."""
    item = make_item(target_text="perro", article="el")
    exercise = TypedAnswerExercise(repository)
    request = exercise.create_request(item)

    assert exercise.check_answer(request, "un perro")
    assert not exercise.check_answer(request, "gato")


def test_verb_options_have_two_distinct_distractors(make_verb, repository):
    """Test that options are the answer plus two other forms of the verb."""
    verb = make_verb(forms=("hablo", "hablas", "habla", "hablamos", "habláis", "hablan"))
    forms = repository.list_verb_forms(verb.id)
    form = forms[0]

    for seed in range(20):
        options = build_verb_options(form, forms, random.Random(seed))
        assert len(options) == 3
        assert len(set(options)) == 3
        assert form.target_text in options
        assert set(options) <= {f.target_text for f in forms}


def test_verb_options_skip_same_surface_text(make_verb, repository):
    """Test that duplicates of the answer are never offered as distractors."""
    verb = make_verb(forms=("habla", "habla", "hablan"))
    forms = repository.list_verb_forms(verb.id)
    form = forms[0]

    options = build_verb_options(form, forms, random.Random(0))
    assert sorted(options) == ["habla", "hablan"]


def test_verb_form_request(make_verb, repository):
    """Test the multiple-choice request for a verb form."""
    verb = make_verb()
    form = repository.list_verb_forms(verb.id)[1]
    exercise = VerbFormChoiceExercise(repository, random.Random(5))
    request = exercise.create_request(form)

    assert form.kind == ItemKind.VERB_FORM
    assert request.answer == "hablas"
    assert request.sentence == f"Yo {BLANK} con mi madre."
    assert not request.expects_text
    assert sorted(request.options) == ["habla", "hablas", "hablo"]
    assert exercise.check_answer(request, "hablas")
    assert not exercise.check_answer(request, "HABLAS ")
    assert not exercise.check_answer(request, None)


if __name__ == "__main__":
    pytest.main([__file__])
