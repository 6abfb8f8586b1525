import pytest

import main as cards_main


@pytest.mark.integration
def test_health(client):
    r = client.get('/health')
    assert r.status_code == 200
    body = r.json()
    assert body['status'] == 'ok'
    assert body['service'] == 'cards'


@pytest.mark.integration
def test_parse_note(client, mixed_note, mixed_note_units):
    r = client.post('/flashcards/parse', json={'text': mixed_note, 'formatter': 'plain'})
    assert r.status_code == 200
    body = r.json()
    assert body['success'] is True
    assert [(c['kind'], c['start_line'], c['end_line']) for c in body['cards']] == [tuple(u) for u in mixed_note_units]
    assert body['cards'][0]['scheduling'] == '<!--SR:!2024-03-01,3,250-->'
    assert body['cards'][1]['faces'] == [
        {'front': 'Osmosis', 'back': 'Diffusion of water across a membrane'},
        {'front': 'Diffusion of water across a membrane', 'back': 'Osmosis'},
    ]
    assert body['cards'][3]['faces'][0]['front'] == 'Photosynthesis converts [...] into [...].'
    assert body['metadata']['face_count'] == 7


@pytest.mark.integration
def test_parse_with_custom_options(client):
    payload = {'text': 'Q >> A\n\nFront\n%%\nBack', 'options': {'inline_separator': '>>', 'block_separator': '%%'}}
    body = client.post('/flashcards/parse', json=payload).json()
    assert [c['kind'] for c in body['cards']] == ['InlineBasic', 'BlockBasic']
    assert body['cards'][1]['faces'] == [{'front': 'Front', 'back': 'Back'}]


@pytest.mark.integration
def test_parse_note_without_cards(client, no_cards_note):
    r = client.post('/flashcards/parse', json={'text': no_cards_note})
    assert r.status_code == 200
    assert r.json()['cards'] == []


@pytest.mark.integration
@pytest.mark.parametrize('path', ['/flashcards/parse', '/flashcards/segment'])
def test_empty_text_is_rejected(client, path):
    r = client.post(path, json={'text': '  \n '})
    assert r.status_code == 400
    assert r.json()['success'] is False


@pytest.mark.integration
def test_too_large_note(client, monkeypatch):
    monkeypatch.setattr(cards_main.settings, 'MAX_NOTE_LENGTH', 10)
    r = client.post('/flashcards/parse', json={'text': 'Q::A\n' * 10})
    assert r.status_code == 413


@pytest.mark.integration
def test_bad_cloze_pattern(client):
    r = client.post('/flashcards/parse', json={'text': 'Q::A', 'options': {'cloze_patterns': ['no marker']}})
    assert r.status_code == 422
    assert r.json()['error'] == 'Invalid options'


@pytest.mark.integration
def test_unknown_formatter(client):
    r = client.post('/flashcards/parse', json={'text': 'Q::A', 'formatter': 'latex'})
    assert r.status_code == 422


@pytest.mark.integration
def test_segment(client, frontmatter):
    r = client.post('/flashcards/segment', json={'text': frontmatter + '\nQ::A'})
    assert r.status_code == 200
    cards = r.json()['cards']
    assert cards == [{'kind': 'InlineBasic', 'text': 'Q::A', 'start_line': 4, 'end_line': 4, 'scheduling': None, 'faces': []}]


@pytest.mark.integration
def test_expand(client):
    r = client.post('/flashcards/expand', json={'kind': 'BlockReversed', 'text': 'Front\n??\nBack'})
    assert r.status_code == 200
    assert r.json()['faces'] == [{'front': 'Front', 'back': 'Back'}, {'front': 'Back', 'back': 'Front'}]


@pytest.mark.integration
def test_expand_unknown_kind(client):
    r = client.post('/flashcards/expand', json={'kind': 'Occlusion', 'text': 'x'})
    assert r.status_code == 422


@pytest.mark.integration
def test_request_id_is_echoed(client):
    r = client.post('/flashcards/parse', json={'text': 'Q::A'}, headers={'X-Request-ID': 'trace-123'})
    assert r.headers['X-Request-ID'] == 'trace-123'
    assert r.json()['request_id'] == 'trace-123'


@pytest.mark.integration
@pytest.mark.parametrize('kind,text', [
    ('InlineBasic', 'hello world'),
    ('BlockBasic', 'a\nb\nc'),
    ('BlockReversed', 'Front\n?\nBack'),
    ('Cloze', 'nothing hidden here'),
    ('InlineBasic', 'Q1::A1\n\nQ2::A2'),
])
def test_expand_rejects_text_of_another_kind(client, kind, text):
    r = client.post('/flashcards/expand', json={'kind': kind, 'text': text})
    assert r.status_code == 422
    assert r.json()['error'] == 'Invalid card text'


@pytest.mark.integration
def test_expand_outline_card(client):
    r = client.post('/flashcards/expand', json={'kind': 'BlockBasic', 'text': '- Question #flashcard\n  Answer', 'formatter': 'plain'})
    assert r.status_code == 200
    assert r.json()['faces'] == [{'front': 'Question', 'back': 'Answer'}]


@pytest.mark.integration
def test_internal_value_error_is_not_an_options_error(client, monkeypatch):
    def broken_parse(*args, **kwargs):
        raise ValueError('start_line 3 is after end_line 1')

    monkeypatch.setattr(cards_main, 'parse_note', broken_parse)
    r = client.post('/flashcards/parse', json={'text': 'Q::A'})
    assert r.status_code == 500
    assert r.json()['error'] == 'Unexpected error'


@pytest.mark.integration
def test_segment_rejects_formatter_field(client):
    r = client.post('/flashcards/segment', json={'text': 'Q::A', 'formatter': 'latex'})
    assert r.status_code == 422
