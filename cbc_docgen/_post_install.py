"""Playwright 브라우저 설치 헬퍼.

cbc-docgen-install-browsers 명령어(또는 cbc-docgen install-browsers)로 실행:
  cbc-docgen-install-browsers          # PDF 렌더링용 Chromium만 설치
"""

import subprocess
import sys


def main():
    cmd = [sys.executable, "-m", "playwright", "install", "--with-deps", "chromium"]
    print(f"Running: {' '.join(cmd)}")
    subprocess.run(cmd, check=True)
    print("Chromium 설치 완료. PDF 렌더링을 사용할 수 있습니다.")


if __name__ == "__main__":
    main()
