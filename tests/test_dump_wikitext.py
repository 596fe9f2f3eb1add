import json

import pytest

from wiki_collector import dump_wikitext
from wiki_collector.dump_wikitext import MissingPrerequisiteFile, WikitextDumper
from wiki_collector.wiki_api import RateLimitExhausted, WikiApiClient

from fakes import FakeClient

LONG_TITLE = "铜" * 85


def _write_map(config, titles):
    config.page_map_file.parent.mkdir(parents=True, exist_ok=True)
    config.page_map_file.write_text(json.dumps(titles, ensure_ascii=False), encoding="utf-8")


def _pages_response(titles, missing=()):
    pages = {}
    for i, t in enumerate(titles):
        if t in missing:
            pages[str(-1 - i)] = {"ns": 0, "title": t, "missing": ""}
        else:
            pages[str(100 + i)] = {
                "pageid": 100 + i,
                "ns": 0,
                "title": t,
                "revisions": [{"contentformat": "text/x-wiki", "*": f"'''{t}''' wikitext"}],
            }
    return {"batchcomplete": "", "query": {"pages": pages}}


def test_scenario_missing_page_is_skipped(config, sleeper):
    titles = [f"Page {i}" for i in range(50)]
    _write_map(config, titles)

    def handler(params, method):
        requested = params["titles"].split("|")
        return _pages_response(requested, missing={"Page 7"})

    client = FakeClient(handler)
    written = WikitextDumper(client, config, sleep=sleeper).run()

    assert written == 49
    files = sorted(p.name for p in config.wikitext_dir.iterdir())
    assert len(files) == 49
    assert "Page 7.txt" not in files
    assert (config.wikitext_dir / "Page 3.txt").read_text(encoding="utf-8") == "'''Page 3''' wikitext"

    params, method = client.calls[0]
    assert method == "POST"
    assert params["prop"] == "revisions"
    assert params["rvprop"] == "content"
    assert sleeper.waits == [2]


def test_titles_are_batched(config, sleeper):
    config.batch_size = 2
    _write_map(config, ["A", "B", "C", "D", "E"])
    client = FakeClient(lambda params, method: _pages_response(params["titles"].split("|")))

    WikitextDumper(client, config, sleep=sleeper).run()

    assert [p["titles"] for p, _ in client.calls] == ["A|B", "C|D", "E"]
    assert sleeper.waits == [2, 2, 2]


def test_rerun_with_all_files_present_makes_no_requests(config, sleeper):
    titles = ["Copper Shortsword", "Guide: Getting started", "What?"]
    _write_map(config, titles)
    client = FakeClient(lambda params, method: _pages_response(params["titles"].split("|")))
    WikitextDumper(client, config, sleep=sleeper).run()
    assert len(client.calls) == 1

    again = FakeClient(lambda params, method: pytest.fail("unexpected request"))
    assert WikitextDumper(again, config, sleep=sleeper).run() == 0
    assert again.calls == []


def test_partial_batch_is_downloaded_again(config, sleeper):
    _write_map(config, ["A", "B"])
    config.wikitext_dir.mkdir(parents=True)
    (config.wikitext_dir / "A.txt").write_text("old", encoding="utf-8")

    client = FakeClient(lambda params, method: _pages_response(params["titles"].split("|")))
    WikitextDumper(client, config, sleep=sleeper).run()

    assert len(client.calls) == 1
    assert (config.wikitext_dir / "B.txt").exists()


def test_missing_page_map_is_fatal(config, sleeper):
    client = FakeClient(lambda params, method: pytest.fail("unexpected request"))
    with pytest.raises(MissingPrerequisiteFile):
        WikitextDumper(client, config, sleep=sleeper).run()


def test_empty_batch_response_is_skipped(config, sleeper):
    _write_map(config, ["A"])
    client = FakeClient(lambda params, method: None)

    assert WikitextDumper(client, config, sleep=sleeper).run() == 0
    assert not (config.wikitext_dir / "A.txt").exists()


def test_page_without_revisions_gets_empty_file(config):
    pages = {"query": {"pages": [{"title": "Blank"}, {"title": "Slots", "revisions": [{"slots": {"main": {"content": "x"}}}]}]}}
    client = FakeClient(lambda params, method: pages)

    assert WikitextDumper(client, config).download_batch(["Blank", "Slots"]) == 2
    assert (config.wikitext_dir / "Blank.txt").read_text(encoding="utf-8") == ""
    assert (config.wikitext_dir / "Slots.txt").read_text(encoding="utf-8") == "x"


def test_titles_are_sanitized_on_disk(config):
    client = FakeClient(lambda params, method: _pages_response(["Guide: Mining/Ores"]))
    WikitextDumper(client, config).download_batch(["Guide: Mining/Ores"])

    assert (config.wikitext_dir / "Guide_ Mining_Ores.txt").exists()


def test_unwritable_title_does_not_stop_the_batch(config):
    # 255 bytes em UTF-8, + ".txt" passa do limite de nome de arquivo
    client = FakeClient(lambda params, method: _pages_response([LONG_TITLE, "Copper Bar"]))

    written = WikitextDumper(client, config).download_batch([LONG_TITLE, "Copper Bar"])

    assert written == 1
    assert (config.wikitext_dir / "Copper Bar.txt").exists()


def test_run_survives_unwritable_title(config, sleeper):
    _write_map(config, [LONG_TITLE, "Copper Bar"])
    client = FakeClient(lambda params, method: _pages_response(params["titles"].split("|")))

    assert WikitextDumper(client, config, sleep=sleeper).run() == 1
    assert len(client.calls) == 1


def test_main_without_page_map_exits_1(config, monkeypatch):
    monkeypatch.setattr(dump_wikitext, "CrawlerConfig", lambda: config)
    monkeypatch.setattr(WikiApiClient, "call", lambda self, params, method="GET": pytest.fail("unexpected request"))

    assert dump_wikitext.main() == 1


def test_main_with_corrupt_page_map_exits_1(config, monkeypatch):
    config.page_map_file.parent.mkdir(parents=True)
    config.page_map_file.write_text('["Copper Bar", "Iro', encoding="utf-8")
    monkeypatch.setattr(dump_wikitext, "CrawlerConfig", lambda: config)
    monkeypatch.setattr(WikiApiClient, "call", lambda self, params, method="GET": pytest.fail("unexpected request"))

    assert dump_wikitext.main() == 1


def test_main_exits_1_when_rate_limited(config, monkeypatch):
    _write_map(config, ["Copper Bar"])
    monkeypatch.setattr(dump_wikitext, "CrawlerConfig", lambda: config)

    def throttled(self, params, method="GET"):
        raise RateLimitExhausted("HTTP 429 (rate limit): 5 tentativas esgotadas")

    monkeypatch.setattr(WikiApiClient, "call", throttled)
    assert dump_wikitext.main() == 1


def test_main_success_exits_0(config, monkeypatch):
    _write_map(config, ["Copper Bar"])
    monkeypatch.setattr(dump_wikitext, "CrawlerConfig", lambda: config)
    config.batch_delay = 0
    monkeypatch.setattr(
        WikiApiClient, "call", lambda self, params, method="GET": _pages_response(["Copper Bar"])
    )

    assert dump_wikitext.main() == 0
    assert (config.wikitext_dir / "Copper Bar.txt").exists()
