import re
from itertools import islice

from slug_utils import generate_slug, slug_candidates


def test_generate_slug_returns_untitled_for_empty_title():
    assert generate_slug("") == "untitled"


def test_generate_slug_returns_untitled_when_slugify_result_is_empty():
    assert generate_slug("###") == "untitled"


def test_generate_slug_truncates_on_word_boundary():
    assert generate_slug("alpha beta gamma", max_length=11) == "alpha-beta"


def test_generate_slug_truncates_single_long_word():
    assert generate_slug("superlongword", max_length=5) == "super"


def test_generate_slug_outputs_ascii_url_safe_text():
    slug = generate_slug("Hello World 教程")
    assert slug == "hello-world-jiao-cheng"
    assert re.fullmatch(r"[a-z0-9-]+", slug)


def test_slug_candidates_start_with_base_then_number_from_two():
    assert list(islice(slug_candidates("test-import-1"), 4)) == [
        "test-import-1",
        "test-import-1-2",
        "test-import-1-3",
        "test-import-1-4",
    ]
