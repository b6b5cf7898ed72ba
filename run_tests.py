#!/usr/bin/env python3
"""
Seawater 테스트 실행 스크립트

영역별(core, features, orchestrators, ...) 단위 테스트를 실행합니다.
"""

import os
import sys
import subprocess
import argparse
from pathlib import Path

AREAS = ["core", "features", "orchestrators", "adapters", "ports", "observability", "common"]


def run_command(cmd, description):
    """명령어 실행"""
    print(f"\n{'='*60}")
    print(f"실행 중: {description}")
    print(f"명령어: {' '.join(cmd)}")
    print(f"{'='*60}")

    result = subprocess.run(cmd)
    print("성공" if result.returncode == 0 else "실패")
    return result.returncode == 0


def main():
    """메인 함수"""
    parser = argparse.ArgumentParser(description="Seawater 테스트 실행")
    parser.add_argument("--type", choices=["all", "fast"] + AREAS, default="all",
                        help="실행할 테스트 영역 (fast: slow 마커 제외)")
    parser.add_argument("--verbose", action="store_true", help="상세 출력")
    args = parser.parse_args()

    # 프로젝트 루트 디렉토리로 이동
    os.chdir(Path(__file__).parent)

    cmd = [sys.executable, "-m", "pytest"]
    if args.verbose:
        cmd.append("-v")

    if args.type == "all":
        cmd.append("tests/")
        description = "전체 테스트 실행"
    elif args.type == "fast":
        cmd.extend(["-m", "not slow", "tests/"])
        description = "빠른 테스트 실행"
    else:
        cmd.append(f"tests/unit/{args.type}/")
        description = f"{args.type} 모듈 테스트 실행"

    return 0 if run_command(cmd, description) else 1


if __name__ == "__main__":
    sys.exit(main())
