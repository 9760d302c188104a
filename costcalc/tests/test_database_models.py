"""
Tests for the database cost models (RDS, Aurora, DynamoDB, ElastiCache,
DocumentDB, Neptune) against the bundled pricing documents.
"""

import pytest

from costcalc.domain.errors import InvalidConfigurationError, RateNotFoundError


@pytest.mark.asyncio
async def test_rds_single_az_defaults(calculator):
    """db.t3.micro MySQL with 20 GB gp3 for a full month."""
    result = await calculator.calculate('rds', {'instanceClass': 'db.t3.micro'})

    assert result.cost_breakdown == {'compute': 12.41, 'storage': 2.3, 'backup': 0.0}
    assert result.monthly_cost == 14.71


@pytest.mark.asyncio
async def test_rds_multi_az_doubles_instances_and_storage(calculator):
    """Multi-AZ runs a standby instance with its own storage."""
    result = await calculator.calculate('rds', {
        'instanceClass': 'db.t3.micro',
        'deploymentOption': 'Multi-AZ',
    })

    assert result.cost_breakdown['compute'] == 24.82
    assert result.cost_breakdown['storage'] == 4.6


@pytest.mark.asyncio
async def test_rds_backup_beyond_provisioned_storage(calculator):
    """Backups up to the provisioned storage are free."""
    result = await calculator.calculate('rds', {
        'instanceClass': 'db.t3.micro',
        'backupStorage': 30,
    })
    assert result.cost_breakdown['backup'] == 0.95


@pytest.mark.asyncio
async def test_rds_commercial_engine_license(calculator):
    """Commercial engines add a license rate to the instance rate."""
    result = await calculator.calculate('rds', {
        'instanceClass': 'db.t3.micro',
        'engine': 'oracle-ee',
    })
    assert result.cost_breakdown['compute'] == 1034.41


@pytest.mark.asyncio
async def test_rds_reserved_rate_from_instance_table(calculator):
    """A listed reserved rate wins over the discount."""
    result = await calculator.calculate('rds', {
        'instanceClass': 'db.t3.micro',
        'pricingModel': 'Reserved 1-year',
    })
    assert result.cost_breakdown['compute'] == 8.76


@pytest.mark.asyncio
async def test_rds_reserved_discount_fallback(calculator):
    """Without a listed reserved rate the term discount applies."""
    result = await calculator.calculate('rds', {
        'instanceClass': 'db.m5.large',
        'pricingModel': 'Reserved-1yr',
    })
    # 0.096 * (1 - 0.31) * 730
    assert result.cost_breakdown['compute'] == 48.36


@pytest.mark.asyncio
async def test_rds_requires_instance_class(calculator):
    """instanceClass has no default."""
    with pytest.raises(InvalidConfigurationError):
        await calculator.calculate('rds', {})


@pytest.mark.asyncio
async def test_rds_unknown_engine(calculator):
    """Engines missing from the license table are rejected."""
    with pytest.raises(RateNotFoundError):
        await calculator.calculate('rds', {'instanceClass': 'db.t3.micro', 'engine': 'db2'})


@pytest.mark.asyncio
async def test_aurora_serverless_defaults(calculator):
    """One ACU for a full month plus 10 GB standard storage."""
    result = await calculator.calculate('aurora', {})

    assert result.cost_breakdown['compute'] == 87.6
    assert result.cost_breakdown['storage'] == 1.0
    assert result.monthly_cost == 88.6


@pytest.mark.asyncio
async def test_aurora_provisioned_with_replicas(calculator):
    """Writer and read replicas are each billed for the month."""
    result = await calculator.calculate('aurora', {
        'configType': 'provisioned',
        'provisionedInstanceType': 'db.r6g.large',
        'readReplicaCount': 2,
    })
    assert result.cost_breakdown['compute'] == 569.4


@pytest.mark.asyncio
async def test_aurora_global_database(calculator):
    """Secondary regions are billed at the configuration region's rates."""
    result = await calculator.calculate('aurora', {
        'configType': 'global-database',
        'region': 'eu-west-1',
        'globalPrimaryRegion': 'us-east-1',
        'globalSecondaryRegions': 2,
        'globalReplicationGB': 100,
    })

    # 189.80 primary + 2 * 189.80 * 1.05 secondaries
    assert result.cost_breakdown['compute'] == 588.38
    assert result.cost_breakdown['storage'] == 1.05
    assert result.cost_breakdown['globalReplication'] == 2.0


@pytest.mark.asyncio
async def test_aurora_io_and_backtrack(calculator):
    """Standard storage bills I/O per million; backtrack per million change records."""
    result = await calculator.calculate('aurora', {
        'ioRequestsPerMonth': 100,
        'enableBacktrack': True,
        'backtrackChangeRecords': 1000,
    })

    assert result.cost_breakdown['io'] == 20.0
    assert result.cost_breakdown['backtrack'] == 12.0


@pytest.mark.asyncio
async def test_aurora_unknown_config_type(calculator):
    """Unknown deployment types are rejected."""
    with pytest.raises(RateNotFoundError):
        await calculator.calculate('aurora', {'configType': 'multi-master'})


@pytest.mark.asyncio
async def test_dynamodb_on_demand_defaults(calculator):
    """10M writes and 50M reads on demand with 100 GB stored."""
    result = await calculator.calculate('dynamodb', {})

    assert result.cost_breakdown['capacity'] == 25.0
    assert result.cost_breakdown['storage'] == 25.0
    assert result.monthly_cost == 50.0


@pytest.mark.asyncio
async def test_dynamodb_provisioned_capacity(calculator):
    """Provisioned units are billed per hour."""
    result = await calculator.calculate('dynamodb', {'capacityMode': 'provisioned'})
    # (100 * 0.00065 + 500 * 0.00013) * 730
    assert result.cost_breakdown['capacity'] == 94.9


@pytest.mark.asyncio
async def test_dynamodb_optional_features(calculator):
    """Point-in-time recovery, global tables and streams."""
    result = await calculator.calculate('dynamodb', {
        'continuousBackupEnabled': True,
        'globalTablesEnabled': True,
        'streamsEnabled': True,
        'streamsReadRequests': 1_000_000,
    })

    assert result.cost_breakdown['backup'] == 20.0
    assert result.cost_breakdown['globalTables'] == 18.75
    assert result.cost_breakdown['streams'] == 0.2


@pytest.mark.asyncio
async def test_dynamodb_unknown_capacity_mode(calculator):
    """Only on-demand and provisioned capacity exist."""
    with pytest.raises(RateNotFoundError):
        await calculator.calculate('dynamodb', {'capacityMode': 'serverless'})


@pytest.mark.asyncio
async def test_elasticache_nodes_and_transfer(calculator):
    """Two r6g.large nodes and egress after the first free GB."""
    result = await calculator.calculate('elasticache', {'dataTransferOutGB': 101})

    assert result.cost_breakdown['nodes'] == 284.7
    assert result.cost_breakdown['dataTransfer'] == 9.0


@pytest.mark.asyncio
async def test_elasticache_unknown_node_type(calculator):
    """Unknown node types are reported, never priced at zero."""
    with pytest.raises(RateNotFoundError):
        await calculator.calculate('elasticache', {'nodeType': 'z9.mega'})


@pytest.mark.asyncio
async def test_elasticache_unknown_engine(calculator):
    """Only the listed engines are accepted."""
    with pytest.raises(RateNotFoundError):
        await calculator.calculate('elasticache', {'engine': 'valkey-x'})


@pytest.mark.asyncio
async def test_documentdb_cluster(calculator):
    """Instances, storage, I/O per million and backup."""
    result = await calculator.calculate('documentdb', {
        'numberOfInstances': 3,
        'storageGB': 100,
        'ioRequestsPerMonth': 100_000_000,
        'backupStorageGB': 100,
    })

    assert result.cost_breakdown == {
        'instances': 551.88,
        'storage': 10.0,
        'io': 20.0,
        'backup': 2.1,
    }
    assert result.monthly_cost == 583.98


@pytest.mark.asyncio
async def test_neptune_uses_its_own_rates(calculator):
    """Neptune shares the cluster shape but reads the neptune document."""
    result = await calculator.calculate('neptune', {'storageGB': 0})
    assert result.cost_breakdown['instances'] == 221.19
