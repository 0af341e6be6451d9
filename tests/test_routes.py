from api.routes import LISTING_NOTE


def test_listing_returns_empty_set(test_client):
    response = test_client.get('/api/messages-get')

    assert response.status_code == 200
    assert response.get_json() == {'messages': [], 'note': LISTING_NOTE}
    assert response.headers['Access-Control-Allow-Origin'] == '*'
    assert response.headers['Access-Control-Allow-Methods'] == 'GET, OPTIONS'


def test_listing_preflight(test_client):
    response = test_client.options('/api/messages-get')

    assert response.status_code == 200
    assert response.get_data() == b''
    assert response.headers['Access-Control-Max-Age'] == '86400'


def test_listing_rejects_other_methods(test_client):
    response = test_client.post('/api/messages-get')

    assert response.status_code == 405
    assert response.get_json() == {'error': 'Method not allowed'}


def test_status_reports_configuration(test_client):
    response = test_client.get('/status')

    assert response.status_code == 200
    assert response.get_json() == {
        'status': 'healthy',
        'storeConfigured': True,
        'twilioConfigured': True,
        'smsRecipientConfigured': True
    }
