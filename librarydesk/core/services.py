from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Optional

from librarydesk.core.auth_service import AuthService
from librarydesk.core.config.models import AppConfig
from librarydesk.core.config.paths import ConfigFsPaths
from librarydesk.core.events import EventLogger
from librarydesk.core.identity.directory import UserDirectory
from librarydesk.core.identity.passwords import PasswordHasher
from librarydesk.core.members.repository import InMemoryMemberRepository, MemberRepository
from librarydesk.core.members.service import MemberService
from librarydesk.core.permissions.resolver import PermissionResolver
from librarydesk.core.scheduling import Scheduler, ThreadScheduler
from librarydesk.core.security_events import SecurityAuditLogger
from librarydesk.core.session.monitor import SessionMonitor
from librarydesk.core.session.slot import JsonFileSlot, SessionSlot
from librarydesk.core.session.store import SessionStore


@dataclass
class Services:
    cfg: AppConfig
    directory: UserDirectory
    store: SessionStore
    scheduler: Scheduler
    monitor: SessionMonitor
    auth: AuthService
    resolver: PermissionResolver
    members: MemberService
    event_logger: EventLogger
    audit: SecurityAuditLogger

    def shutdown(self) -> None:
        self.monitor.stop()
        self.scheduler.shutdown()


def build_services(
    cfg: AppConfig,
    *,
    fs: Optional[ConfigFsPaths] = None,
    clock: Callable[[], float] = time.time,
    scheduler: Optional[Scheduler] = None,
    slot: Optional[SessionSlot] = None,
    repo: Optional[MemberRepository] = None,
) -> Services:
    """Wire the auth, session, permission and member services from one AppConfig."""
    fs = fs or ConfigFsPaths(".")
    event_logger = EventLogger(path=fs.resolve(cfg.app.events_path))
    audit = SecurityAuditLogger(path=fs.resolve(cfg.security.audit_path))

    hasher = PasswordHasher(n=cfg.security.kdf_n, r=cfg.security.kdf_r, p=cfg.security.kdf_p)
    directory = UserDirectory.seeded(hasher=hasher) if cfg.security.seed_default_users else UserDirectory(hasher=hasher)
    if repo is None:
        repo = InMemoryMemberRepository.seeded() if cfg.security.seed_default_users else InMemoryMemberRepository()

    store = SessionStore(slot=slot or JsonFileSlot(fs.resolve(cfg.session.slot_path)), cfg=cfg.session, clock=clock)
    scheduler = scheduler or ThreadScheduler()
    monitor = SessionMonitor(store=store, scheduler=scheduler, cfg=cfg.session, event_logger=event_logger)
    auth = AuthService(directory=directory, monitor=monitor, audit=audit, event_logger=event_logger)
    resolver = PermissionResolver(audit=audit)
    members = MemberService(repo=repo, directory=directory, resolver=resolver, event_logger=event_logger)

    return Services(
        cfg=cfg,
        directory=directory,
        store=store,
        scheduler=scheduler,
        monitor=monitor,
        auth=auth,
        resolver=resolver,
        members=members,
        event_logger=event_logger,
        audit=audit,
    )
