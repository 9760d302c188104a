"""
Tests for the calculator API endpoints.
"""

import json
from unittest.mock import Mock, AsyncMock, patch

from costcalc.domain.errors import PricingNotFoundError
from costcalc.utils.rounding import build_result


def test_calculate_returns_breakdown(client):
    """A valid configuration returns the rounded breakdown."""
    response = client.post('/api/calculator/calculate', json={
        'serviceCode': 'ec2',
        'configuration': {'instanceType': 'm5.large', 'quantity': 2},
    })

    assert response.status_code == 200
    data = response.json()
    assert data['success'] is True
    assert data['data']['costBreakdown']['compute'] == 140.16
    assert data['data']['monthlyCost'] == 140.16
    assert data['data']['annualCost'] == 1681.92


def test_calculate_uses_request_region(client):
    """The request-level region applies when the configuration names none."""
    response = client.post('/api/calculator/calculate', json={
        'serviceCode': 'ec2',
        'region': 'eu-west-1',
        'configuration': {'instanceType': 'm5.large'},
    })

    assert response.status_code == 200
    # 0.096 * 1.05 * 730
    assert response.json()['data']['monthlyCost'] == 73.58


def test_calculate_unsupported_service(client):
    """Unknown services are reported as not implemented."""
    response = client.post('/api/calculator/calculate', json={
        'serviceCode': 'mainframe',
        'configuration': {},
    })

    assert response.status_code == 501
    assert 'mainframe' in response.json()['detail']


def test_calculate_unknown_rate(client):
    """Selections missing from the rate table are a client error."""
    response = client.post('/api/calculator/calculate', json={
        'serviceCode': 'ec2',
        'configuration': {'instanceType': 'x9.huge'},
    })
    assert response.status_code == 400


def test_calculate_invalid_configuration(client):
    """Validation failures list each problem."""
    response = client.post('/api/calculator/calculate', json={
        'serviceCode': 'lambda',
        'configuration': {'requestsPerMonth': -5},
    })

    assert response.status_code == 422
    detail = response.json()['detail']
    assert detail['errors']
    assert 'lambda' in detail['message']


def test_calculate_rejects_infinite_quantity(client):
    """A JSON Infinity literal is an invalid configuration, not a server error."""
    response = client.post(
        '/api/calculator/calculate',
        content='{"serviceCode": "s3", "configuration": {"storageAmount": Infinity}}',
        headers={'Content-Type': 'application/json'},
    )

    assert response.status_code == 422
    assert any('storageAmount' in error for error in response.json()['detail']['errors'])


def test_calculate_reports_cost_overflow(client):
    """Costs too large to represent are a client error."""
    response = client.post('/api/calculator/calculate', json={
        'serviceCode': 'ec2',
        'configuration': {
            'instanceType': 'm5.large',
            'quantity': 10 ** 10,
            'ebsVolumes': [{'type': 'gp3', 'size': 1e308}],
        },
    })

    assert response.status_code == 400
    assert 'out of range' in response.json()['detail']


def test_calculate_missing_pricing(client):
    """A region without pricing documents is a 404."""
    response = client.post('/api/calculator/calculate', json={
        'serviceCode': 'ec2',
        'region': 'mars-north-1',
        'configuration': {'instanceType': 'm5.large'},
    })
    assert response.status_code == 404


def test_calculate_requires_service_code(client):
    """serviceCode is mandatory."""
    response = client.post('/api/calculator/calculate', json={'configuration': {}})
    assert response.status_code == 422


def test_calculate_maps_errors_from_calculator(client):
    """Errors raised by the calculator are mapped to HTTP status codes."""
    with patch('costcalc.api.calculator.get_calculator') as mock_get_calculator:
        mock_calculator = Mock()
        mock_calculator.calculate = AsyncMock(side_effect=PricingNotFoundError('s3', 'us-east-1', 'storage'))
        mock_get_calculator.return_value = mock_calculator

        response = client.post('/api/calculator/calculate', json={'serviceCode': 's3', 'configuration': {}})

    assert response.status_code == 404
    assert 'category: storage' in response.json()['detail']


def test_calculate_passes_region_to_calculator(client):
    """The route forwards code, configuration and region unchanged."""
    with patch('costcalc.api.calculator.get_calculator') as mock_get_calculator:
        mock_calculator = Mock()
        mock_calculator.calculate = AsyncMock(return_value=build_result({'compute': 1.0}))
        mock_get_calculator.return_value = mock_calculator

        response = client.post('/api/calculator/calculate', json={
            'serviceCode': 'ec2',
            'region': 'ap-south-1',
            'configuration': {'instanceType': 't3.micro'},
        })

    assert response.status_code == 200
    mock_calculator.calculate.assert_awaited_once_with(
        'ec2', {'instanceType': 't3.micro'}, region='ap-south-1'
    )


def test_batch_endpoint(client):
    """Batch results keep input order and total the successes."""
    response = client.post('/api/calculator/batch', json={'services': [
        {'serviceCode': 'ec2', 'configuration': {'instanceType': 'm5.large'}},
        {'serviceCode': 'mainframe', 'configuration': {}},
        {'serviceCode': 'sqs', 'configuration': {}},
    ]})

    assert response.status_code == 200
    data = response.json()['data']
    assert [item['serviceCode'] for item in data['results']] == ['ec2', 'mainframe', 'sqs']
    assert 'error' in data['results'][1]
    assert data['totalMonthlyCost'] == 73.68
    assert data['succeeded'] == 2
    assert data['failed'] == 1


def test_batch_endpoint_rejects_empty_list(client):
    """An empty services list is a bad request."""
    response = client.post('/api/calculator/batch', json={'services': []})

    assert response.status_code == 400
    assert response.json()['detail'] == 'services array is required'


def test_list_services(client):
    """Every supported service is listed with its metadata."""
    response = client.get('/api/calculator/services')

    assert response.status_code == 200
    data = response.json()
    assert data['count'] == 27
    codes = [service['code'] for service in data['data']]
    assert codes == sorted(codes)
    assert {'code', 'name', 'category', 'description'} <= set(data['data'][0])


def test_describe_service(client):
    """A service description includes its schema and defaults."""
    response = client.get('/api/calculator/services/RDS')

    assert response.status_code == 200
    data = response.json()['data']
    assert data['code'] == 'rds'
    assert data['defaults']['engine'] == 'mysql'
    assert 'configurationSchema' in data


def test_describe_unknown_service(client):
    """Unknown services are 404 on the discovery endpoint."""
    response = client.get('/api/calculator/services/mainframe')
    assert response.status_code == 404


def test_list_regions(client):
    """Regions list the services priced there."""
    response = client.get('/api/calculator/regions')

    assert response.status_code == 200
    regions = {region['code']: region for region in response.json()['data']}
    assert regions['us-east-1']['name'] == 'US East (N. Virginia)'
    assert 'ec2' in regions['us-east-1']['services']


def test_health(client):
    """Health reports the service count and cache breaker state."""
    response = client.get('/health')

    assert response.status_code == 200
    data = response.json()
    assert data['status'] == 'ok'
    assert data['services'] == 27
    assert data['pricingCache']['name'] == 'pricing_cache'


def test_oversized_request_rejected(client):
    """Bodies above the limit are refused with 413."""
    payload = json.dumps({
        'serviceCode': 'ec2',
        'configuration': {'instanceType': 'm5.large', 'padding': 'x' * (300 * 1024)},
    })

    response = client.post(
        '/api/calculator/calculate',
        content=payload,
        headers={'Content-Type': 'application/json'},
    )

    assert response.status_code == 413
    assert response.json()['error'] == 'request_too_large'
