from director_finder.pipeline.extractors import CandidateExtractor


def _run(html, url='https://site.com/staff'):
    return CandidateExtractor(['staff']).extract_from_static_html(html, url)


def test_mailto_with_params_sanitized_lowercase():
    html = '''<div class="team-member">
        <p>John Doe - Camp Director <a href="mailto:User@Site.COM?subject=Hi">Email</a></p>
    </div>'''
    cs = _run(html)
    assert cs and cs[0].email == 'user@site.com'


def test_mailto_without_address_falls_back_to_link_text():
    html = '''<div>
        <p>Camp Director: John Doe <a href="mailto:">john@site.com</a></p>
    </div>'''
    cs = _run(html)
    assert cs and cs[0].email == 'john@site.com'


def test_paired_mailto_ignores_off_domain_links():
    html = '''<div class="team-member">
        <h3>John Doe</h3>
        <a href="mailto:john@gmail.com">Email</a>
    </div>'''
    assert _run(html) == []
