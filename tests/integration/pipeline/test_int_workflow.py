# tests/integration/pipeline/test_int_workflow.py - v2
"""Integration tests for the generation workflow.

Runs director -> planner -> images -> market analysis -> content strategy
through MarketingPipeline with the scripted client from conftest.
"""

from __future__ import annotations

import asyncio
import errno
import json

import pytest

from pmdesigner.cache.cache_factory import create_cache_store
from pmdesigner.cache.json_store import JsonCacheStore
from pmdesigner.cache.result_cache import ResultCache
from pmdesigner.llm.errors import ClassifiedError, ErrorKind
from pmdesigner.pipeline.imagery import ImageJob, image_description_map
from pmdesigner.pipeline.workflow import MarketingPipeline


class TestFullWorkflow:
    @pytest.mark.asyncio
    async def test_end_to_end(
        self,
        scripted_client,
        settings,
        memory_cache,
        director_payload,
        content_plan_payload,
        market_payload,
        strategy_payload,
        make_text_result,
        png_data_uri,
    ):
        pipeline = MarketingPipeline(settings, scripted_client, memory_cache)

        scripted_client.push(make_text_result(director_payload))
        director = await pipeline.analyze_product(png_data_uri, "Horizon 保溫瓶")
        route = director.marketing_routes[0]

        scripted_client.push(make_text_result(content_plan_payload))
        plan = await pipeline.plan_content(
            route, director.product_analysis, product_image=png_data_uri
        )

        jobs = [
            ImageJob(item.visual_prompt_en, item.ratio, png_data_uri) for item in plan.items
        ]
        images = await pipeline.generate_images(jobs)
        assert all(isinstance(uri, str) for uri in images)
        generated = [item.id for item, uri in zip(plan.items, images) if isinstance(uri, str)]
        descriptions = image_description_map(plan.items, generated)

        scripted_client.push(make_text_result(market_payload))
        market = await pipeline.analyze_market("Horizon 保溫瓶", route)

        scripted_client.push(make_text_result(strategy_payload))
        strategy = await pipeline.plan_content_strategy(
            market, "Horizon 保溫瓶", route, descriptions
        )

        assert len(strategy.content_topics) == 2
        assert len(scripted_client.image_requests()) == len(plan.items)
        strategy_prompt = scripted_client.requests[-1].prompt
        assert "img_1_white.png: 產品主圖（白底商品圖）" in strategy_prompt
        assert "img_3_hook.png: 通勤開場" in strategy_prompt

    @pytest.mark.asyncio
    async def test_regenerating_suite_hits_cache(
        self, scripted_client, settings, memory_cache, content_plan_payload
    ):
        pipeline = MarketingPipeline(settings, scripted_client, memory_cache)
        jobs = [
            ImageJob(item["visual_prompt_en"], item["ratio"])
            for item in content_plan_payload["items"]
        ]
        first = await pipeline.generate_images(jobs)
        second = await pipeline.generate_images(jobs)
        assert first == second
        assert len(scripted_client.image_requests()) == len(jobs)
        assert memory_cache.stats().count == len(jobs)

    @pytest.mark.asyncio
    async def test_concurrent_invocations(
        self,
        scripted_client,
        settings,
        route,
        market_payload,
        make_text_result,
    ):
        pipeline = MarketingPipeline(settings, scripted_client)
        scripted_client.push(make_text_result(market_payload))
        market, image = await asyncio.gather(
            pipeline.analyze_market("Horizon 保溫瓶", route),
            pipeline.generate_image("a silver bottle on a desk", "1:1"),
        )
        assert market.buyer_personas[0].name == "小美"
        assert image.startswith("data:image/png;base64,")


class TestFailureModes:
    @pytest.mark.asyncio
    async def test_transient_then_success(
        self,
        scripted_client,
        status_error,
        settings,
        director_payload,
        make_text_result,
        png_data_uri,
    ):
        scripted_client.push(
            status_error(429, "RESOURCE_EXHAUSTED"),
            make_text_result(director_payload),
        )
        pipeline = MarketingPipeline(settings, scripted_client)
        result = await pipeline.analyze_product(png_data_uri)
        assert result.marketing_routes
        assert len(scripted_client.requests) == 2

    @pytest.mark.asyncio
    async def test_structurally_broken_document(
        self, scripted_client, settings, make_text_result, png_data_uri
    ):
        scripted_client.push(make_text_result({"product_analysis": {"name": "x"}}))
        pipeline = MarketingPipeline(settings, scripted_client)
        with pytest.raises(ClassifiedError) as exc_info:
            await pipeline.analyze_product(png_data_uri)
        err = exc_info.value
        assert err.kind is ErrorKind.VALIDATION
        assert err.violations
        assert err.retryable is False

    @pytest.mark.asyncio
    async def test_one_failed_image_keeps_others(
        self, scripted_client, status_error, settings, make_image_result
    ):
        scripted_client.push_image(make_image_result(), status_error(400, "Invalid prompt"))
        pipeline = MarketingPipeline(settings, scripted_client)
        results = await pipeline.generate_images(
            [ImageJob("first image prompt", "1:1"), ImageJob("second image prompt", "1:1")]
        )
        assert isinstance(results[0], str)
        assert isinstance(results[1], ClassifiedError)
        assert results[1].status_code == 400


class TestFileBackedCache:
    @pytest.mark.asyncio
    async def test_cache_survives_pipeline_restart(self, scripted_client, file_settings):
        s = file_settings(cache_backend="sqlite")

        def fresh_cache() -> ResultCache:
            return ResultCache(create_cache_store(s), key_prefix=s.cache_key_prefix)

        first = MarketingPipeline(s, scripted_client, fresh_cache())
        uri = await first.generate_image("a silver bottle", "1:1")

        second = MarketingPipeline(s, scripted_client, fresh_cache())
        assert await second.generate_image("a silver bottle", "1:1") == uri
        assert len(scripted_client.image_requests()) == 1

    @pytest.mark.asyncio
    async def test_json_cache_files(self, scripted_client, file_settings, tmp_path):
        s = file_settings(cache_backend="json")
        cache = ResultCache(create_cache_store(s), key_prefix=s.cache_key_prefix)
        pipeline = MarketingPipeline(s, scripted_client, cache)
        await pipeline.generate_image("a silver bottle", "1:1")

        files = list((tmp_path / "cache").glob("*.json"))
        assert len(files) == 1
        record = json.loads(files[0].read_text(encoding="utf-8"))
        assert record["key"].startswith("pm_designer_image_")

    @pytest.mark.asyncio
    async def test_full_disk_keeps_generated_images(
        self, scripted_client, file_settings, tmp_path
    ):
        class FullDiskStore(JsonCacheStore):
            def set(self, key: str, value: str) -> None:
                raise OSError(errno.ENOSPC, "No space left on device")

        s = file_settings(cache_backend="json")
        cache = ResultCache(FullDiskStore(tmp_path / "cache"), key_prefix=s.cache_key_prefix)
        pipeline = MarketingPipeline(s, scripted_client, cache)

        results = await pipeline.generate_images(
            [ImageJob("a red bicycle", "1:1"), ImageJob("a blue car", "1:1")]
        )

        assert all(isinstance(uri, str) for uri in results)
        assert len(scripted_client.image_requests()) == 2
        assert cache.stats().count == 0
