import subprocess
import sys
import os

import pytest

from main import build_parser, load_config


def test_run_main_without_document_id_shows_usage():
    """
    文書IDを指定せずにmain.pyを実行すると、使い方を表示して終了コード2で終了することを確認するテスト。
    """
    main_py_path = os.path.join(os.path.dirname(__file__), '..', 'main.py')

    # 環境変数を設定して、ヘッドレス環境でQtを実行できるようにする
    env = os.environ.copy()
    env['QT_QPA_PLATFORM'] = 'offscreen'

    result = subprocess.run(
        [sys.executable, main_py_path],
        capture_output=True,
        text=True,
        timeout=30,
        check=False,
        env=env
    )
    assert result.returncode == 2
    assert "usage:" in result.stderr
    assert "document_id" in result.stderr


def test_parser_reads_document_id_and_options():
    args = build_parser().parse_args(["42", "--config", "conf/app.json", "--read-only"])
    assert args.document_id == 42
    assert args.config == "conf/app.json"
    assert args.read_only is True


def test_parser_rejects_non_numeric_id():
    with pytest.raises(SystemExit) as info:
        build_parser().parse_args(["abc"])
    assert info.value.code == 2


def test_load_config_from_explicit_path(tmp_path, monkeypatch):
    monkeypatch.delenv("SIGNING_API_BASE_URL", raising=False)
    path = tmp_path / "app.json"
    path.write_text('{"api_base_url": "https://api.example.com"}', encoding="utf-8")
    config = load_config(str(path))
    assert config.api_base_url == "https://api.example.com"
    assert config.data_dir == str(tmp_path)
