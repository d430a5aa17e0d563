# obsstats

A library of observability building blocks for a storage control plane
running on Kubernetes:

- **Usage reports**: a report model (pool, volume and replica counts, size
  statistics and percentiles, event counters), its JSON encoding, encryption
  with the `gpg` binary and an HTTP client that posts it to a collection
  endpoint.
- **Event statistics**: thread-safe counters of pool and volume create/delete
  events, the config-map data that persists them, and their rendering in the
  Prometheus text format, served by a small HTTP server.
- **Pool metrics**: a pool list cache refreshed from a fetch call, and
  `disk_pool_*` gauges per node and pool, served the same way.

## Installation

Install the package with your usual Python package tool. Its only runtime
dependency is `requests`; the `test` extra adds `pytest`. Encrypting reports
needs `gpg` on the `PATH`.

## Report statistics

`obsstats.report_models` holds the report data model and its helpers:

```python
from obsstats.report_models import percentile, max_value, mean_value, Percentiles

percentile([10, 20, 30, 40], 50)   # 25, linear interpolation between ranks
max_value([])                      # 0 for an empty list
mean_value([1, 2])                 # 1, truncated to an integer
Percentiles.from_values([10, 20, 30, 40]).to_dict()   # keys "50%", "75%", "90%"
```

- `Volumes.from_volumes(volumes, event_data)` reads `spec.size` of each volume.
- `Pools.from_pools(pools, event_data)` reads `state.capacity`, skipping pools
  without a state.
- `Replicas.from_volumes(replica_count, volumes)` reads `spec.num_replicas`.
- `Report.to_dict()` / `Report.to_json()` give the camelCase payload; the
  `created` and `deleted` counters are left out when zero.

`parse_samples(text)` parses Prometheus text output into `Sample` objects.
`event_stats(url, session=None)` fetches and parses the statistics endpoint
(30 s timeout; without a session, a retrying one is used) and returns an
`EventsRecord`; `EventData.from_record(record)` pulls out the pool and volume
created/deleted counters. A failed request raises `StatsFetchFailure`, an
unreadable body `ResponseBodyFailure`.

## Usage reports

- `obsstats.callhome.generate_report(k8s_client, api_client, k8s_cluster_id,
  deploy_namespace, product_version, aggregator_url, session=None)` builds a
  `Report`. `k8s_client` needs `get_node_len()`; `api_client` needs
  `get_nodes()`, `get_pools()`, `get_volumes()` and `get_replicas()`. A
  source that fails is logged and its part of the report is left at its
  default. `hash_value(text)` gives the hex SHA-256 digest used for
  identifiers.
- `obsstats.encryption.encrypt(report, encryption_dir, key_filepath)` writes
  the report's JSON to a temporary file in `encryption_dir`, runs the command
  from `gpg_command(...)` and returns the encrypted bytes. Failures raise
  `EncryptError`.
- `obsstats.receiver.Receiver(cluster_id, session=None, url=RECEIVER_ENDPOINT)`
  posts a body with `post(body)`, sending the headers from `headers()`.
  Without a session it makes one that retries up to 3 times and does not
  verify certificates. Request failures raise `ReceiverError`.

Settings in `obsstats.constants`:

- `encryption_dir()`: `ENCRYPTION_DIR`, default `./`; raises `ValueError`
  unless it is an existing directory.
- `key_filepath()`: `KEY_FILEPATH`, default `./public.gpg`; raises
  `ValueError` unless it is an existing file.
- `call_home_frequency()`: 24 hours, as a `timedelta`.
- `release_version()`: the installed version of this package, or `"unknown"`.

## Event statistics

```python
from obsstats.events_cache import EventAction, EventCache, EventCategory, EventSet, store_events
from obsstats.metrics import StatsCollector
from obsstats.stats_server import create_server

cache = EventCache(EventSet())
store_events(cache, [(EventCategory.POOL, EventAction.CREATE)])
print(StatsCollector(cache).render())      # pool{action="created"} 1 ...

server = create_server(StatsCollector(cache), "0.0.0.0:9090")   # GET /stats
server.serve_forever()
```

- `EventSet.from_event_store(data)` decodes the `stats` entry of config-map
  data, raising `ReferenceConfigMapNoData`, `ReferencedKeyNotPresent` or
  `EventDeserializationError`. `EventSet.to_dict()` / `from_dict()` round-trip.
- `obsstats.events_store` gives `config_map_name(release_name)`
  (`<release>-event-store`), `init_config_map_data()`,
  `config_map_data(cache)` and `new_config_map(release_name)`, a labelled
  config-map document with empty counters.
- `obsstats.metrics.render_families(families)` merges, sorts and renders
  `MetricFamily` objects.
- `obsstats.stats_server.parse_address(text)` parses `ip:port` or
  `[ipv6]:port`. `create_server(collector, address, path="/stats")` returns a
  bound but not yet running `ThreadingHTTPServer`; binding failures raise
  `SocketBindingFailure`.

## Pool metrics

```python
from obsstats.pool_cache import PoolCache, refresh_pools
from obsstats.pool_client import ApiVersion, PoolClient, latest_version
from obsstats.pools_collector import PoolsCollector
from obsstats.pool_exporter import create_server

version = latest_version([ApiVersion.parse("v0"), ApiVersion.parse("v1")])
client = PoolClient(version, fetch=lambda: [
    {"name": "pool-1", "disks": ["/dev/sdb"], "used": 10, "capacity": 100,
     "state": 1, "committed": 20},
])
cache = PoolCache()
refresh_pools(cache, client)
print(PoolsCollector(cache).render())      # needs MY_NODE_NAME to be set
server = create_server(PoolsCollector(cache), "0.0.0.0:9502")   # GET /metrics
```

- `PoolClient.list_pools()` converts fetched mappings with `Pool.from_v0`
  (committed taken from used) or `Pool.from_v1`; fetch failures raise
  `ExporterError` of kind `GrpcResponseError`, bad data `DeserializationError`.
- `refresh_pools(cache, client)` empties the cache when listing fails.
  `store_pool_data(cache, client, config, stop=None)` refreshes every
  `ExporterConfig.polling_time` seconds until the `stop` event is set.
- `PoolsCollector` emits `disk_pool_total_size_bytes`,
  `disk_pool_used_size_bytes`, `disk_pool_committed_size_bytes` and
  `disk_pool_status`, labelled `node` and `name`; it emits nothing when
  `MY_NODE_NAME` is unset.
- `obsstats.pool_exporter.get_pod_ip()` reads `MY_POD_IP`;
  `grpc_endpoint(pod_ip)` gives `https://<ip>:10124/`.

## Errors

Every error raised on purpose is a subclass of `obsstats.errors.ObsError`.
`ExporterError` carries a `kind`: one of `GrpcResponseError`, `GetNodeError`,
`InvalidURI`, `DeserializationError`, `PodIPError`, `GrpcClientError`.

## What this package does not do

- It installs no commands; the pieces above are wired together by your own
  program.
- It has no Kubernetes client: it does not read or patch config maps, list
  nodes or look up the cluster ID. Callers pass in clients and documents.
- It does not talk to the control plane's REST API or to the storage engine
  over gRPC itself; listings come from the objects and fetch callables you
  supply.
- It does not subscribe to a message bus; events are fed to `store_events`
  as `(category, action)` pairs.