from .base import KubeApi
from .rabbitmqcluster import RabbitmqCluster
from .reconciler import ClusterReconciler, SyncResult

__all__ = ["KubeApi", "RabbitmqCluster", "ClusterReconciler", "SyncResult"]
