from __future__ import annotations

import os

import pytest

from librarydesk.core.config.manager import ConfigManager
from librarydesk.core.config.models import AppConfig, SecurityConfig
from librarydesk.core.config.paths import ConfigFsPaths
from librarydesk.core.identity.directory import UserDirectory
from librarydesk.core.identity.passwords import PasswordHasher
from librarydesk.core.services import build_services
from librarydesk.core.session.slot import MemorySlot
from librarydesk.core.session.store import SessionStore
from tests.helpers.fakes import FakeClock, ManualScheduler

# Small scrypt cost so tests that hash many passwords stay fast.
TEST_KDF_N = 2**8


@pytest.fixture
def hasher():
    return PasswordHasher(n=TEST_KDF_N)


@pytest.fixture
def directory(hasher):
    return UserDirectory.seeded(hasher=hasher)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scheduler(clock):
    return ManualScheduler(clock)


@pytest.fixture
def slot():
    return MemorySlot()


@pytest.fixture
def store(slot, clock):
    return SessionStore(slot=slot, clock=clock.time)


@pytest.fixture
def tmp_config_root(tmp_path):
    fs = ConfigFsPaths(root=str(tmp_path))
    os.makedirs(fs.config_dir, exist_ok=True)
    return fs


@pytest.fixture
def config_manager(tmp_config_root):
    cm = ConfigManager(fs=tmp_config_root, logger=None, read_only=False)
    cm.load_all()
    return cm


@pytest.fixture
def app_config():
    return AppConfig(security=SecurityConfig(kdf_n=TEST_KDF_N))


@pytest.fixture
def services(tmp_config_root, app_config, clock, scheduler, slot):
    svc = build_services(app_config, fs=tmp_config_root, clock=clock.time, scheduler=scheduler, slot=slot)
    yield svc
    svc.shutdown()
