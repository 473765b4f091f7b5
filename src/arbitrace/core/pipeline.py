"""
Enrichment Orchestrator

Runs one transaction through the report stages:

    RetrievingTrace -> RetrievingStateChanges -> RetrievingTransferEvents
        -> RetrievingFunctionSignatures -> RetrievingContractNames -> Done

Stages only move forward. All three raw traces are retrieved during
RetrievingTrace, so a trace the node cannot produce halts the run there;
enrichment misses and cache failures never do.
"""

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional

from web3 import Web3

from .decoder import DecoderState
from .models import CallFrame, PipelineStage, TokenMetadata, TraceReport
from .normalizer import count_frames, format_trace_tree, unique_unknown_addresses, unique_unknown_selectors
from .state_diff import aggregate_state_diff
from .trace_fetcher import TraceFetcher, validate_tx_hash
from .transfers import extract_transfers
from ..cache.store import CUSTOM_SIGNATURES, KNOWN_ADDRESSES, TOKEN_DECIMALS, TOKEN_NAMES, CacheStore, empty_state
from ..config import TracerConfig
from ..resolvers import AddressResolver, SignatureResolver, TokenMetadataResolver
from ..utils.exceptions import CacheStoreError, TraceUnavailableError
from ..utils.logging import get_logger

logger = get_logger("pipeline")

StageListener = Callable[[PipelineStage], None]


class TracePipeline:
    """
    Report pipeline bound to exactly one transaction hash.

    ``run()`` does the work at most once; later calls return the same report
    (or re-raise the same failure) without touching the network.
    """

    def __init__(
        self,
        tx_hash: str,
        fetcher: TraceFetcher,
        signature_resolver: SignatureResolver,
        address_resolver: AddressResolver,
        token_resolver: TokenMetadataResolver,
        cache_store: CacheStore,
        decoder: Optional[DecoderState] = None,
        is_current: Optional[Callable[[], bool]] = None,
        prefetch: bool = False,
    ):
        self.tx_hash = validate_tx_hash(tx_hash)
        self.fetcher = fetcher
        self.signature_resolver = signature_resolver
        self.address_resolver = address_resolver
        self.token_resolver = token_resolver
        self.cache_store = cache_store
        self.decoder = decoder
        self.is_current = is_current or (lambda: True)
        self.prefetch = prefetch

        self.report: Optional[TraceReport] = None
        self.error: Optional[TraceUnavailableError] = None
        self.committed = False
        self._stage = PipelineStage.RETRIEVING_TRACE
        self._started = False
        self._listeners: List[StageListener] = []
        self._lock = threading.Lock()
        self._futures: Dict[str, Future] = {}

    @classmethod
    def from_config(
        cls,
        tx_hash: str,
        config: TracerConfig,
        cache_store: Optional[CacheStore] = None,
        is_current: Optional[Callable[[], bool]] = None,
        w3: Optional[Web3] = None,
    ) -> "TracePipeline":
        fetcher = TraceFetcher(config.rpc_url, timeout=config.rpc_timeout, w3=w3)
        return cls(
            tx_hash,
            fetcher=fetcher,
            signature_resolver=SignatureResolver(config.signature_api_url, timeout=config.http_timeout),
            address_resolver=AddressResolver(
                config.explorer_api_url,
                config.explorer_api_key,
                timeout=config.http_timeout,
                batch_size=config.batch_size,
                batch_pause=config.batch_pause,
            ),
            token_resolver=TokenMetadataResolver(fetcher.w3),
            cache_store=cache_store or CacheStore(config.cache_dir),
            is_current=is_current,
            prefetch=config.concurrent_traces,
        )

    @property
    def stage(self) -> PipelineStage:
        return self._stage

    @property
    def failed(self) -> bool:
        return self.error is not None

    def add_listener(self, listener: StageListener) -> None:
        """Call ``listener`` with every stage the pipeline enters."""
        self._listeners.append(listener)

    def _advance(self, stage: PipelineStage) -> None:
        if stage.index != self._stage.index + 1:
            raise RuntimeError(f"Illegal stage transition {self._stage.value} -> {stage.value}")
        self._stage = stage
        logger.info(f"[{self.tx_hash[:10]}] {stage.value}")
        for listener in self._listeners:
            listener(stage)

    def _trace(self, kind: str, fetch: Callable[[str], Any]) -> Any:
        if kind in self._futures:
            return self._futures[kind].result()
        return fetch(self.tx_hash)

    def run(self) -> TraceReport:
        """
        Produce the annotated report.

        Raises:
            TraceUnavailableError: when any of the raw traces cannot be retrieved
        """
        with self._lock:
            if self._started:
                if self.error is not None:
                    raise self.error
                if self.report is None:
                    raise RuntimeError(f"Pipeline for {self.tx_hash} did not complete")
                return self.report
            self._started = True

            executor = ThreadPoolExecutor(max_workers=3) if self.prefetch else None
            try:
                if executor is not None:
                    self._futures = self.fetcher.prefetch(self.tx_hash, executor)
                self.report = self._run()
            except TraceUnavailableError as e:
                self.error = e
                logger.error(f"Could not retrieve/decode transaction {self.tx_hash} ({self._stage.value}): {e.message}")
                raise
            finally:
                if executor is not None:
                    executor.shutdown(wait=False, cancel_futures=True)
            return self.report

    def _load_cache(self) -> Dict[str, Any]:
        try:
            return self.cache_store.load()
        except CacheStoreError as e:
            logger.warning(f"Ignoring unreadable cache: {e.message}")
            return empty_state()

    def _run(self) -> TraceReport:
        cache = self._load_cache()
        if self.decoder is None:
            decoder = DecoderState.default(cache[CUSTOM_SIGNATURES])
        else:
            decoder = self.decoder.copy()
            decoder.extend_text(cache[CUSTOM_SIGNATURES])

        call_tree: CallFrame = self._trace("call", self.fetcher.fetch_call_tree)
        storage_writes = self._trace("storage", self.fetcher.fetch_storage_writes)
        log_entries = self._trace("logs", self.fetcher.fetch_log_entries)
        logger.debug(
            f"Call tree has {count_frames(call_tree)} frames, "
            f"{len(storage_writes)} storage writes, {len(log_entries)} LOG3 records"
        )

        self._advance(PipelineStage.RETRIEVING_STATE_CHANGES)
        state_diff = aggregate_state_diff(storage_writes)

        self._advance(PipelineStage.RETRIEVING_TRANSFER_EVENTS)
        transfers = extract_transfers(log_entries)

        self._advance(PipelineStage.RETRIEVING_FUNCTION_SIGNATURES)
        unknown_selectors = unique_unknown_selectors(decoder, call_tree)
        logger.debug(f"{len(unknown_selectors)} unknown selectors")
        new_signatures = self.signature_resolver.resolve(unknown_selectors)
        decoder.extend_text(new_signatures)

        self._advance(PipelineStage.RETRIEVING_CONTRACT_NAMES)
        known_addresses = dict(cache[KNOWN_ADDRESSES])
        unknown_addresses = unique_unknown_addresses(known_addresses, call_tree)
        logger.debug(f"{len(unknown_addresses)} unknown addresses")
        new_names = self.address_resolver.resolve(unknown_addresses)
        known_addresses.update(new_names)

        token_names, token_decimals = self._resolve_tokens(transfers, cache)

        annotated = format_trace_tree(decoder, known_addresses, call_tree)

        updates = {
            KNOWN_ADDRESSES: new_names,
            CUSTOM_SIGNATURES: new_signatures,
            TOKEN_NAMES: token_names,
            TOKEN_DECIMALS: token_decimals,
        }
        self._commit(updates)
        self.decoder = decoder

        token_metadata = {}
        all_names = {**cache[TOKEN_NAMES], **token_names}
        all_decimals = {**cache[TOKEN_DECIMALS], **token_decimals}
        for token in transfers:
            token_metadata[token] = TokenMetadata(symbol=all_names.get(token), decimals=all_decimals.get(token))

        self._advance(PipelineStage.DONE)
        return TraceReport(
            tx_hash=self.tx_hash,
            call_tree=annotated,
            state_diff=state_diff,
            transfers=transfers,
            token_metadata=token_metadata,
            stage=self._stage,
        )

    def _resolve_tokens(self, transfers, cache):
        missing = [t for t in transfers if t not in cache[TOKEN_NAMES] or t not in cache[TOKEN_DECIMALS]]
        names: Dict[str, str] = {}
        decimals: Dict[str, int] = {}
        for token, meta in self.token_resolver.resolve(missing).items():
            if token not in missing:
                continue
            if meta.symbol is not None:
                names[token] = meta.symbol
            if meta.decimals is not None:
                decimals[token] = meta.decimals
        return names, decimals

    def _commit(self, updates: Dict[str, Any]) -> None:
        if not self.is_current():
            logger.warning(f"Discarding results for {self.tx_hash}: a different transaction is now selected")
            return
        try:
            self.cache_store.merge(updates)
        except CacheStoreError as e:
            logger.warning(f"Could not save lookup results for {self.tx_hash}: {e.message}")
            return
        self.committed = True


class TraceSession:
    """
    Tracks the selected transaction and runs each hash at most once.

    Runs happen on a background executor; a run whose hash is no longer
    selected when it finishes does not write to the cache.
    """

    def __init__(
        self,
        pipeline_factory: Callable[[str, Callable[[], bool]], TracePipeline],
        max_workers: int = 2,
    ):
        self.pipeline_factory = pipeline_factory
        self.current_tx_hash: Optional[str] = None
        self._pipelines: Dict[str, TracePipeline] = {}
        self._futures: Dict[str, Future] = {}
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=max_workers)

    @classmethod
    def from_config(cls, config: TracerConfig) -> "TraceSession":
        cache_store = CacheStore(config.cache_dir)
        return cls(lambda tx, is_current: TracePipeline.from_config(tx, config, cache_store, is_current))

    def observe(self, tx_hash: str) -> Future:
        """Select ``tx_hash``; starts its run the first time it is seen."""
        tx_hash = validate_tx_hash(tx_hash)
        with self._lock:
            self.current_tx_hash = tx_hash
            if tx_hash not in self._futures:
                pipeline = self.pipeline_factory(tx_hash, lambda: self.current_tx_hash == tx_hash)
                self._pipelines[tx_hash] = pipeline
                self._futures[tx_hash] = self._executor.submit(pipeline.run)
            return self._futures[tx_hash]

    def pipeline(self, tx_hash: str) -> Optional[TracePipeline]:
        return self._pipelines.get(tx_hash.lower())

    @property
    def current_stage(self) -> Optional[PipelineStage]:
        pipeline = self.pipeline(self.current_tx_hash) if self.current_tx_hash else None
        return pipeline.stage if pipeline else None

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    def __enter__(self) -> "TraceSession":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
