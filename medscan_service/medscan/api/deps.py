# medscan/api/deps.py
from functools import lru_cache

from medscan.agent.graph import build_scan_graph
from medscan.agent.nodes import ScanNodes
from medscan.core.app_config import DEFAULT_TONE
from medscan.db.db_config import get_sqlite_connection
from medscan.services.inference import InferenceService, get_inference_service
from medscan.services.interactions import InteractionAnalyzer
from medscan.services.notifications import MockNotifier, Notifier
from medscan.services.reminders import DEFAULT_TONES, ReminderScheduler, ToneRegistry
from medscan.services.sessions import SessionRegistry
from medscan.services.storage import ScanStore


class Engine:
    """Everything a request handler needs, wired once per process."""

    def __init__(
        self,
        inference: InferenceService,
        notifier: Notifier,
        store: ScanStore,
        tones: ToneRegistry = DEFAULT_TONES,
        default_tone: str = DEFAULT_TONE,
    ):
        self.inference = inference
        self.notifier = notifier
        self.store = store
        self.default_tone = default_tone
        self.analyzer = InteractionAnalyzer(inference)
        self.scheduler = ReminderScheduler(tones)
        self.sessions = SessionRegistry()
        self.graph = build_scan_graph(ScanNodes(inference, self.analyzer, self.scheduler, notifier))


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return Engine(
        inference=get_inference_service(),
        notifier=MockNotifier(),
        store=ScanStore(get_sqlite_connection()),
    )
