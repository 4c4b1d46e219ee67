"""
Waste Sort - 项目初始化脚本

创建必要的目录结构，检查配置文件和历史数据库
"""
import os
import sqlite3
from pathlib import Path
from typing import Optional

from dotenv import dotenv_values

from wastesort.common import BASE_DIR


def create_directory_structure(base_dir: Path = BASE_DIR):
    """创建必要的目录结构"""
    print("[INFO] Creating directory structure...")

    directories = [
        "data",
        "logs",
        "config"
    ]

    for directory in directories:
        dir_path = Path(base_dir) / directory
        dir_path.mkdir(parents=True, exist_ok=True)
        print(f"  [OK] {directory}/")


def check_env_file(base_dir: Path = BASE_DIR) -> bool:
    """检查 .env 文件和 API Key"""
    print("\n[CHECK] Environment configuration...")

    env_path = Path(base_dir) / ".env"
    env_example = Path(base_dir) / ".env.example"

    if not env_path.exists():
        if env_example.exists():
            print("  [WARN] .env file not found")
            print(f"  [HELP] Please copy .env.example to .env and configure:")
            print(f"         cp .env.example .env")
            print(f"         Then edit .env to add GEMINI_API_KEY")
        else:
            print("  [WARN] .env.example file not found")
        return False

    print("  [OK] .env file exists")

    # 进程环境优先，其次是目标目录下的 .env
    if not (os.getenv("GEMINI_API_KEY") or dotenv_values(env_path).get("GEMINI_API_KEY")):
        print("  [WARN] GEMINI_API_KEY is not set")
        return False

    print("  [OK] GEMINI_API_KEY configured")
    return True


def check_config_file(base_dir: Path = BASE_DIR) -> bool:
    """检查扫描配置文件是否存在"""
    print("\n[CHECK] Configuration files...")

    config_path = Path(base_dir) / "config" / "scan_config.json"

    if not config_path.exists():
        print("  [WARN] config/scan_config.json not found")
        print("  [INFO] Application will create default config on first run")
        return False

    print("  [OK] config/scan_config.json exists")
    return True


def check_history_database(base_dir: Path = BASE_DIR) -> bool:
    """检查历史数据库是否可读"""
    print("\n[CHECK] History database...")

    db_path = Path(base_dir) / "data" / "history.db"

    if not db_path.exists():
        print("  [INFO] Database file not found (first run)")
        return True

    try:
        with sqlite3.connect(str(db_path)) as conn:
            conn.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
    except sqlite3.Error as e:
        print(f"  [WARN] Database is not readable: {e}")
        print("  [HELP] Delete the database to start fresh:")
        print("         rm data/history.db")
        return False

    print("  [OK] Database readable")
    return True


def main(base_dir: Optional[Path] = None) -> int:
    """主函数

    Args:
        base_dir: 项目根目录，默认取 WASTESORT_HOME 或当前工作目录
    """
    base_dir = Path(base_dir) if base_dir else BASE_DIR
    print("=" * 60)
    print("Waste Sort - Project Setup")
    print(f"Project root: {base_dir}")
    print("=" * 60)

    # 创建目录结构
    create_directory_structure(base_dir)

    # 检查配置
    env_ok = check_env_file(base_dir)
    check_config_file(base_dir)
    data_ok = check_history_database(base_dir)

    # 总结
    print("\n" + "=" * 60)
    print("Setup Check Complete")
    print("=" * 60)

    if not env_ok:
        print("\n[ERROR] Please create .env file and set GEMINI_API_KEY:")
        print("   cp .env.example .env")
        return 1
    if not data_ok:
        print("\n[WARN] History database is damaged. Recommended action:")
        print("   rm data/history.db")
        return 1

    print("\n[OK] Everything is ready! You can start the application:")
    print("   wastesort-web")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
