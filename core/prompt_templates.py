"""
Prompt templates for constrained text generation.
"""

from models import GenerationRequest

from .extraction import ANSWER_TAG, REASONING_TAG

# Words on either side of the long-word threshold, shown to the generator
LONG_WORD_POSITIVE_EXAMPLE = ("because", 7)
LONG_WORD_NEGATIVE_EXAMPLE = ("school", 6)


def build_long_word_definition() -> str:
    """Definition of a long word with one counting and one non-counting example."""
    positive, positive_len = LONG_WORD_POSITIVE_EXAMPLE
    negative, negative_len = LONG_WORD_NEGATIVE_EXAMPLE
    return (
        "A \"long word\" is any word with MORE THAN 6 letters (7 or more). "
        "Punctuation does not count as letters.\n"
        f"- \"{positive}\" has {positive_len} letters -> it IS a long word.\n"
        f"- \"{negative}\" has {negative_len} letters -> it is NOT a long word."
    )


def build_generation_prompt(request: GenerationRequest) -> str:
    """
    Build the initial instruction for one generation request.

    Args:
        request: Validated generation request with precomputed targets

    Returns:
        A single user-turn instruction asking for a private plan and a tagged answer
    """
    return f"""You are an expert educational content creator.
Your task is to write a text about "{request.topic}" in {request.language} that mathematically conforms to a specific LIX readability score of {request.target_score:g}.

TARGET METRICS:
- Sentence Count: EXACTLY {request.target_sentences}
- Long Word Count (more than 6 letters): EXACTLY {request.target_long_words}
- Total Word Count: APPROXIMATELY {request.target_words}

LONG WORD DEFINITION:
{build_long_word_definition()}

INSTRUCTIONS:
1. Plan your text privately inside a <{REASONING_TAG}> block.
2. In that block, list every word you will use that has more than 6 letters. Make sure the list has EXACTLY {request.target_long_words} entries.
3. Write the final text inside a <{ANSWER_TAG}> block, and nothing else inside it.
4. Verify that the text has EXACTLY {request.target_sentences} sentences, each ending with ".", "!" or "?".

WARNING: The long word count is the most critical metric. Count carefully.

Example format:
<{REASONING_TAG}>
Plan: ...
Long words to use (target: {request.target_long_words}): 1. ..., 2. ...
</{REASONING_TAG}>
<{ANSWER_TAG}>
Your final text here.
</{ANSWER_TAG}>"""


def build_format_reminder() -> str:
    return (
        f"Plan again inside <{REASONING_TAG}> tags, then write the complete corrected text "
        f"inside <{ANSWER_TAG}> tags."
    )
