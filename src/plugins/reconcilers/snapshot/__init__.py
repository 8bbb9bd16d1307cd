from plugins.reconcilers.snapshot.poll import PollPolicy
from plugins.reconcilers.snapshot.projector import StateProjector
from plugins.reconcilers.snapshot.reconciler import RESOURCE_TYPE, SnapshotReconciler

__all__ = ["PollPolicy", "StateProjector", "SnapshotReconciler", "RESOURCE_TYPE"]
