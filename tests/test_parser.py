from treefetch.crawler.parser import ContentParser, extract_links


def test_absolute_links_in_document_order():
    html = '<a href="https://a/1">x</a><img src="/local.png"><a href="http://a/2">y</a>'
    assert extract_links(html) == ["https://a/1", "http://a/2"]


def test_images_and_anchors_interleave():
    html = """
    <html><body>
      <img src="https://cdn/1.png">
      <p><a href="https://a/1">one</a></p>
      <img src="http://cdn/2.png">
    </body></html>
    """
    assert extract_links(html) == ["https://cdn/1.png", "https://a/1", "http://cdn/2.png"]


def test_other_schemes_and_relative_links_dropped():
    html = """
    <a href="mailto:me@example.com">mail</a>
    <a href="ftp://files/x">ftp</a>
    <a href="../up">up</a>
    <a href="#top">top</a>
    <a href="//cdn/protocol-relative">pr</a>
    <a href="javascript:void(0)">js</a>
    """
    assert extract_links(html) == []


def test_duplicates_are_kept():
    html = '<a href="https://a/1">x</a><a href="https://a/1">again</a>'
    assert extract_links(html) == ["https://a/1", "https://a/1"]


def test_scheme_match_is_case_insensitive():
    assert extract_links('<a href="HTTPS://A/1">x</a>') == ["HTTPS://A/1"]


def test_anchor_without_href_and_empty_values_ignored():
    html = '<a name="x">x</a><a href="">e</a><img src=""><img alt="none">'
    assert extract_links(html) == []


def test_no_links_is_empty_list():
    assert extract_links("just some plain text") == []


def test_parser_with_builtin_tree_builder():
    parser = ContentParser(features="html.parser")
    html = '<body><img src="HTTPS://a/logo.png"><a href="mailto:x@a">m</a></body>'
    assert parser.extract_links(html) == ["HTTPS://a/logo.png"]
