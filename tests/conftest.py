"""Shared test fixtures for Benchmarker tests."""
import textwrap
from pathlib import Path

import pytest

GLOBAL_CONFIG = """
providers:
  docker:
    build:
      - docker build -f {{manifest}} -t {{language}}.{{framework}} .
    metadata:
      - docker inspect {{language}}.{{framework}} > ip.txt
    clean:
      - docker rm -f {{language}}.{{framework}}
  digitalocean:
    build:
      - doctl compute droplet create {{language}}-{{framework}} --user-data-file user_data.yml
    metadata:
      - doctl compute droplet get {{language}}-{{framework}} > ip.txt
    exec: ssh -i {{SSH_KEY}} root@`cat ip.txt` '{{command}}'
    reboot: ssh root@`cat ip.txt` reboot
    clean:
      - doctl compute droplet delete -f {{language}}-{{framework}}
cloud:
  config:
    packages:
      - curl
framework:
  engines:
    - default: 8
"""

RUBY_DOCKERFILE = """\
FROM ruby:2.7

WORKDIR /opt/web

{{#files}}
COPY {{.}} {{.}}
{{/files}}
{{#environment}}
ENV {{.}}
{{/environment}}

CMD {{command}}
"""

CRYSTAL_BUILD_DOCKERFILE = """\
FROM crystallang/crystal

WORKDIR /opt/web
{{#sources}}
COPY {{.}} {{.}}
{{/sources}}
RUN shards build --release
"""


def write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(content))
    return path


@pytest.fixture
def matrix(tmp_path):
    """A miniature benchmark tree with two languages."""
    root = tmp_path / "bench"
    write(root / "config.yaml", GLOBAL_CONFIG)

    write(root / "ruby" / "config.yaml", """
        language:
          version: 2.7
        files:
          - config.ru
        environment:
          RACK_ENV: production
        command: bundle exec puma
    """)
    write(root / "ruby" / "Dockerfile", RUBY_DOCKERFILE)
    write(root / "ruby" / "rails" / "config.yaml", """
        framework:
          website: rubyonrails.org
    """)
    write(root / "ruby" / "rails" / "config.ru", "run Rails.application\n")
    write(root / "ruby" / "sinatra" / "config.yaml", """
        files:
          - app.rb
    """)
    write(root / "ruby" / "sinatra" / "app.rb", "get('/') { '' }\n")

    write(root / "crystal" / "config.yaml", """
        sources:
          - src/*.cr
        binaries:
          - bin/server
    """)
    write(root / "crystal" / ".build" / "digitalocean" / "Dockerfile", CRYSTAL_BUILD_DOCKERFILE)
    write(root / "crystal" / "Dockerfile", "FROM crystallang/crystal\n")
    write(root / "crystal" / "kemal" / "config.yaml", """
        framework:
          website: kemalcr.com
    """)
    write(root / "crystal" / "kemal" / "src" / "server.cr", "require \"kemal\"\n")
    return root
