import pytest

from edgeroute.patterns import compile_pattern, matches, normalize_pattern


@pytest.mark.parametrize(
    ("pattern", "path"),
    [
        ("/secondary/*", "/secondary/foo.png"),
        ("/secondary/*", "/secondary/"),
        ("/secondary/*", "/secondary/nested/deep/file.css"),
        ("*.jpg", "/images/photo.jpg"),
        ("/images/*.jpg", "/images/2024/photo.jpg"),
        ("/a?c", "/abc"),
        ("/index.html", "/index.html"),
        ("*", "/anything/at/all"),
        ("secondary/*", "/secondary/foo.png"),
    ],
)
def test_matches(pattern, path):
    assert matches(pattern, path)


@pytest.mark.parametrize(
    ("pattern", "path"),
    [
        ("/secondary/*", "/secondary"),
        ("/secondary/*", "/Secondary/foo.png"),
        ("/secondary/*", "/other/secondary/foo.png"),
        ("/a?c", "/ac"),
        ("/a?c", "/abbc"),
        ("/index.html", "/index.html/"),
        ("/index.html", "/index.htm"),
        ("/images/*.jpg", "/images/photo.JPG"),
    ],
)
def test_does_not_match(pattern, path):
    assert not matches(pattern, path)


@pytest.mark.parametrize("pattern", ["/file.(1)+[x]", "/a^b$c", "/dots.and|pipes"])
def test_regex_characters_are_literal(pattern):
    assert matches(pattern, pattern)
    assert not matches(pattern, pattern + "x")


def test_star_matches_newlines_in_raw_path():
    assert matches("/docs/*", "/docs/a\nb")


def test_normalize_pattern():
    assert normalize_pattern("images/*") == "/images/*"
    assert normalize_pattern("/images/*") == "/images/*"


def test_compile_pattern_is_cached():
    assert compile_pattern("/cached/*") is compile_pattern("/cached/*")


def test_compile_empty_pattern_raises():
    with pytest.raises(ValueError, match="Path pattern cannot be empty"):
        compile_pattern("")
