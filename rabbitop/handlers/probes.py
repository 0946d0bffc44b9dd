import datetime
import kopf
from rabbitop.handlers.rabbitmqcluster import reconciliation_locks


# Liveness probes
@kopf.on.probe(id="now")
def get_current_timestamp(**kwargs):
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


@kopf.on.probe(id="clusters")
def count_tracked_clusters(**kwargs):
    return len(reconciliation_locks)
