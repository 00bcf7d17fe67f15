from leadpipe.crawler.frontier import PRIORITY_DEPTH, CrawlFrontier


def _frontier(max_depth: int = 2) -> CrawlFrontier:
    f = CrawlFrontier(max_depth=max_depth)
    f.seed("https://acme.co.uk")
    return f


def test_seed_is_depth_zero() -> None:
    assert _frontier().pop() == ("https://acme.co.uk", 0)


def test_interesting_pages_jump_the_queue() -> None:
    f = _frontier()
    f.pop()
    f.add_link("https://acme.co.uk/blog", 0)
    f.add_link("https://acme.co.uk/contact-us", 0)

    assert f.pop() == ("https://acme.co.uk/contact-us", PRIORITY_DEPTH)
    assert f.pop() == ("https://acme.co.uk/blog", 1)


def test_depth_limit() -> None:
    f = _frontier(max_depth=1)
    f.pop()
    assert f.add_link("https://acme.co.uk/a", 0) is True
    assert f.add_link("https://acme.co.uk/a/b", 1) is False


def test_no_duplicates_or_revisits() -> None:
    f = _frontier()
    f.pop()
    assert f.add_link("https://acme.co.uk", 0) is False
    assert f.add_link("https://acme.co.uk/x", 0) is True
    assert f.add_link("https://acme.co.uk/x", 0) is False
    assert len(f) == 1


def test_skipped_assets() -> None:
    f = _frontier()
    assert f.add_link("https://acme.co.uk/brochure.pdf", 0) is False
    assert f.add_link("https://acme.co.uk/wp-content/uploads/x", 0) is False


def test_pop_marks_visited() -> None:
    f = _frontier()
    f.pop()
    assert "https://acme.co.uk" in f.visited
    assert f.pop() is None
