import asyncio

import pytest

from app.viewmodels.main_vm import BUSY, GENERATING, MainVM
from core.errors import LogoGenerationError
from core.export import ExportPipeline
from core.models import SurfaceRect, WatermarkSettings
from core.preview import LoadState, PreviewRenderer
from core.session import SETTINGS, WATERMARK, Session
from fakes import FakeLoader, RecordingSink, RecordingSleep, solid

LOGO_URL = "data:image/png;base64,logo"


class TaskCollector:
    """Spawn function that remembers the tasks it schedules."""

    def __init__(self):
        self.tasks = []

    def __call__(self, coro):
        task = asyncio.ensure_future(coro)
        self.tasks.append(task)
        return task

    async def drain(self):
        while self.tasks:
            await self.tasks.pop(0)


class FakeLogoService:
    def __init__(self, result=LOGO_URL, error=None):
        self.result = result
        self.error = error
        self.prompts = []

    async def generate(self, prompt):
        self.prompts.append(prompt)
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        return self.result


def _build(logo_service=None):
    loader = FakeLoader(
        {
            "/p/a.png": solid((0, 0, 255, 255), (100, 50)),
            "/p/b.png": solid((0, 255, 0, 255), (60, 40)),
            "/w/logo.png": solid((255, 0, 0, 255), (10, 10)),
            LOGO_URL: solid((255, 255, 0, 255), (8, 8)),
        }
    )
    spawn = TaskCollector()
    session = Session()
    sink = RecordingSink()
    renderer = PreviewRenderer(loader, spawn=spawn)
    pipeline = ExportPipeline(session, loader, sink, sleep=RecordingSleep())
    vm = MainVM(session, renderer, pipeline, logo_service)
    return vm, spawn, sink


def test_adding_photos_loads_the_first_into_the_preview():
    async def scenario():
        vm, spawn, _ = _build()
        vm.add_photos(["/p/a.png", "/p/b.png"])
        await spawn.drain()

        assert vm.photo_count == 2
        assert [p.file_name for p in vm.photos] == ["a.png", "b.png"]
        assert [p.is_active for p in vm.photos] == [True, False]
        assert vm.photos[0].export_name == "watermarked-a.png"
        assert vm.renderer.base.source == "/p/a.png"
        assert vm.renderer.frame.size == (100, 50)
        assert vm.has_next

        vm.select_photo(vm.photos[1].id)
        await spawn.drain()
        assert vm.renderer.frame.size == (60, 40)

        vm.remove_photo(vm.photos[1].id)
        await spawn.drain()
        assert vm.renderer.base.source == "/p/a.png"

    asyncio.run(scenario())


def test_watermark_and_settings_reach_the_renderer():
    async def scenario():
        vm, spawn, _ = _build()
        topics = []
        vm.add_listener(topics.append)
        vm.add_photos(["/p/a.png"])
        vm.set_watermark_file("/w/logo.png")
        await spawn.drain()

        assert vm.has_watermark
        assert vm.renderer.watermark.state is LoadState.READY

        vm.update_setting("opacity", 0.3)
        assert vm.settings.opacity == 0.3
        assert vm.renderer.settings == vm.settings
        assert WATERMARK in topics and SETTINGS in topics

        with pytest.raises(KeyError):
            vm.update_setting("blur", 1)

    asyncio.run(scenario())


def test_dragging_updates_session_settings():
    async def scenario():
        vm, spawn, _ = _build()
        vm.add_photos(["/p/a.png"])
        vm.set_watermark_file("/w/logo.png")
        await spawn.drain()

        surface = SurfaceRect(left=0, top=0, width=100, height=50)
        assert vm.renderer.pointer_down(50, 25, surface)
        vm.renderer.pointer_move(60, 30, surface)
        vm.renderer.pointer_up()

        assert vm.session.settings.x == pytest.approx(60)
        assert vm.session.settings.y == pytest.approx(60)
        assert vm.settings == vm.renderer.settings

    asyncio.run(scenario())


def test_generate_logo_sets_watermark():
    async def scenario():
        service = FakeLogoService()
        vm, spawn, _ = _build(service)
        topics = []
        vm.add_listener(topics.append)
        vm.update_setting("rotation", 15)

        assert await vm.generate_logo("a fox")
        await spawn.drain()

        assert service.prompts == ["a fox"]
        assert vm.session.watermark_source == LOGO_URL
        assert vm.settings == WatermarkSettings(rotation=15)
        assert topics.count(GENERATING) == 2
        assert not vm.generating
        assert vm.generation_error is None

    asyncio.run(scenario())


def test_generate_logo_failure_leaves_session_untouched():
    async def scenario():
        service = FakeLogoService(error=LogoGenerationError("quota exceeded"))
        vm, _, _ = _build(service)
        vm.set_watermark_file("/w/logo.png")

        assert not await vm.generate_logo("a fox")

        assert vm.generation_error == "quota exceeded"
        assert vm.session.watermark_source == "/w/logo.png"
        assert not vm.generating

    asyncio.run(scenario())


def test_generate_logo_ignores_blank_prompt_and_missing_service():
    async def scenario():
        service = FakeLogoService()
        vm, _, _ = _build(service)
        assert not await vm.generate_logo("  ")
        assert service.prompts == []

        bare, _, _ = _build()
        assert not bare.can_generate
        assert not await bare.generate_logo("a fox")

    asyncio.run(scenario())


def test_export_current_reports_busy_and_advances():
    async def scenario():
        vm, spawn, sink = _build()
        topics = []
        vm.add_listener(topics.append)
        vm.add_photos(["/p/a.png", "/p/b.png"])
        vm.set_watermark_file("/w/logo.png")

        assert await vm.export_current() == "watermarked-a.png"
        await spawn.drain()

        assert sink.names == ["watermarked-a.png"]
        assert vm.photos[1].is_active
        assert topics.count(BUSY) == 2
        assert not vm.busy

    asyncio.run(scenario())


def test_export_all():
    async def scenario():
        vm, spawn, sink = _build()
        vm.add_photos(["/p/a.png", "/p/b.png"])
        vm.set_watermark_file("/w/logo.png")
        await spawn.drain()

        assert await vm.export_all() == ["watermarked-a.png", "watermarked-b.png"]
        assert sink.names == ["watermarked-a.png", "watermarked-b.png"]

    asyncio.run(scenario())


def test_save_preview_writes_current_frame():
    async def scenario():
        vm, spawn, sink = _build()
        assert vm.save_preview() is None

        vm.add_photos(["/p/a.png"])
        await spawn.drain()
        assert vm.save_preview() == "watermarked-image.png"
        assert sink.saved[0][1].startswith(b"\x89PNG")

    asyncio.run(scenario())


def test_preview_loads_are_held_until_done():
    async def scenario():
        vm, spawn, _ = _build()
        vm.add_photos(["/p/a.png"])
        vm.set_watermark_file("/w/logo.png")
        assert vm.pending_loads == 2

        await spawn.drain()
        await asyncio.sleep(0)
        assert vm.pending_loads == 0
        assert vm.renderer.watermark.state is LoadState.READY

    asyncio.run(scenario())
