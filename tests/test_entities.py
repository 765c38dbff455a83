from MarkDocs.entities import decode


def test_decode_named_and_numeric_entities():
    text = "a &lt;b&gt; &amp; &quot;c&quot; &#39;d&#x27; e&#x2F;f&nbsp;g &#65;&#8364;"
    assert decode(text) == "a <b> & \"c\" 'd' e/f g A€"


def test_decode_double_encoded_markers():
    assert decode("&amp;lt;div&amp;gt;") == "<div>"
    assert decode("x &amp;amp; y") == "x & y"


def test_decode_stops_after_bounded_passes():
    # Four layers of encoding: two passes peel two of them.
    assert decode("&amp;amp;amp;amp;") == "&amp;amp;"


def test_decode_is_total():
    assert decode("") == ""
    assert decode("no entities here") == "no entities here"
    assert decode("&#99999999999;") == "&#99999999999;"
    assert decode("&unknown;") == "&unknown;"


def test_decode_idempotent_once_resolved():
    for text in ["&lt;p&gt;", "&amp;amp;gt;", "Tom &amp; Jerry", "&#60;tag&#62;"]:
        once = decode(text)
        assert decode(once) == once


def test_decode_keeps_characters_xml_cannot_hold():
    assert decode("a&#0;b&#8;c") == "a&#0;b&#8;c"
    assert decode("&#55296;") == "&#55296;"
    assert decode("tab&#9;ok&#10;") == "tab\tok\n"
