from mod_assign.services.formatting import (
    count_words,
    rewrite_pluginfile_urls,
    shorten_text,
    strip_markup,
)


def test_strip_markup_drops_tags_and_scripts():
    text = "<p>Hello <b>there</b></p><script>alert(1)</script><p>again &amp; again</p>"
    assert strip_markup(text) == "Hello there\nagain & again"


def test_count_words_ignores_markup():
    assert count_words("<p>one two</p><p>three</p>") == 3
    assert count_words("") == 0
    assert count_words(None) == 0


def test_shorten_text_cuts_on_word_boundary():
    assert shorten_text("short") == "short"
    assert shorten_text("alpha beta gamma", length=12) == "alpha beta..."


def test_pluginfile_urls_are_expanded():
    text = '<img src="@@PLUGINFILE@@/a.png">'
    rewritten = rewrite_pluginfile_urls(text, 3, "submissions_onlinetext", 9)
    assert "@@PLUGINFILE@@" not in rewritten
    assert rewritten.endswith('/pluginfile/3/mod_assign/submissions_onlinetext/9/a.png">')
