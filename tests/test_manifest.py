"""Tests for container manifest and build-command generation."""
import pytest

from benchmarker.core.errors import TemplateNotFound, TemplateSyntaxError, UnknownProvider
from benchmarker.services.manifest import (
    HEALTH_CHECK,
    ManifestGenerator,
    expand_patterns,
    local_name,
)

from conftest import write

OPTIONS = {
    'collect': 'on',
    'clean': 'on',
    'sieger_options': '-r GET:/ -c 10',
    'DATABASE_URL': 'postgres://db',
    'SSH_KEY': '/keys/id',
}


@pytest.fixture
def generator(matrix):
    return ManifestGenerator(matrix)


def collect_command(language, framework):
    return (
        f"DATABASE_URL=postgres://db ../../bin/client --language {language} "
        f"--framework {framework} -r GET:/ -c 10 -h `cat ip.txt`"
    )


class TestPatterns:
    """Test glob expansion of sources/files."""

    def test_local_name_strips_parent_segments(self):
        assert local_name("../.shared/app.cr") == "shared/app.cr"
        assert local_name("../../common/lib.rb") == "common/lib.rb"
        assert local_name("src/app.cr") == "src/app.cr"

    def test_inside_matches_are_relative(self, matrix):
        directory = matrix / "crystal" / "kemal"
        assert expand_patterns(directory, ["src/*.cr"]) == ["src/server.cr"]

    def test_outside_matches_are_copied_inward(self, matrix):
        write(matrix / "ruby" / ".shared" / "helper.rb", "module Helper; end\n")
        directory = matrix / "ruby" / "sinatra"

        files = expand_patterns(directory, ["app.rb", "../.shared/helper.rb"])

        assert files == ["app.rb", "shared/helper.rb"]
        assert (directory / "shared" / "helper.rb").read_text() == "module Helper; end\n"

    def test_no_match_yields_nothing(self, matrix):
        assert expand_patterns(matrix / "ruby" / "rails", ["*.missing"]) == []


class TestContainerManifest:
    """Test .Dockerfile rendering."""

    def test_container_engine_uses_language_template(self, generator, matrix):
        result = generator.generate("ruby", "rails", "docker", OPTIONS)

        assert result.container_manifest == matrix / "ruby" / "rails" / ".Dockerfile"
        assert result.container_manifest.read_text() == (
            "FROM ruby:2.7\n"
            "\n"
            "WORKDIR /opt/web\n"
            "\n"
            "COPY config.ru config.ru\n"
            "ENV RACK_ENV production\n"
            "\n"
            "CMD bundle exec puma\n"
        )

    def test_binaries_use_provider_build_template(self, generator, matrix):
        result = generator.generate("crystal", "kemal", "digitalocean", OPTIONS)

        assert result.container_manifest_written
        assert result.container_manifest.read_text() == (
            "FROM crystallang/crystal\n"
            "\n"
            "WORKDIR /opt/web\n"
            "COPY src/server.cr src/server.cr\n"
            "RUN shards build --release\n"
        )

    def test_manifest_skipped_without_template_need(self, generator, matrix):
        result = generator.generate("ruby", "rails", "digitalocean", OPTIONS)

        assert result.container_manifest is None
        assert not (matrix / "ruby" / "rails" / ".Dockerfile").exists()
        assert result.build_file.exists()

    def test_shared_files_end_up_in_manifest(self, generator, matrix):
        write(matrix / "ruby" / ".shared" / "helper.rb", "module Helper; end\n")
        write(matrix / "ruby" / "sinatra" / "config.yaml", """
            files:
              - app.rb
              - ../.shared/helper.rb
        """)

        result = generator.generate("ruby", "sinatra", "docker", OPTIONS)

        assert "COPY shared/helper.rb shared/helper.rb\n" in result.container_manifest.read_text()

    def test_missing_template(self, generator, matrix):
        (matrix / "ruby" / "Dockerfile").unlink()
        with pytest.raises(TemplateNotFound):
            generator.generate("ruby", "rails", "docker", OPTIONS)


class TestBuildCommands:
    """Test command ordering in .Makefile."""

    def test_minimal_ordering(self, tmp_path):
        write(tmp_path / "config.yaml", """
            providers:
              custom:
                build: [a]
                metadata: [b]
                exec: run {{command}}
        """)
        write(tmp_path / "go" / "config.yaml", "{}\n")
        write(tmp_path / "go" / "gin" / "config.yaml", "bootstrap: [c]\n")

        result = ManifestGenerator(tmp_path).generate("go", "gin", "custom", OPTIONS)

        assert result.commands == ["a", "b", "run c", HEALTH_CHECK, collect_command("go", "gin")]

    def test_container_provider(self, generator):
        result = generator.generate("ruby", "rails", "docker", OPTIONS)

        assert result.commands == [
            "docker build -f .Dockerfile -t ruby.rails .",
            "docker inspect ruby.rails > ip.txt",
            HEALTH_CHECK,
            collect_command("ruby", "rails"),
            "docker rm -f ruby.rails",
        ]

    def test_cloud_provider_with_binaries(self, generator, matrix):
        write(matrix / "crystal" / "kemal" / "config.yaml", """
            bootstrap:
              - systemctl enable web
        """)

        result = generator.generate("crystal", "kemal", "digitalocean", OPTIONS)

        assert result.commands == [
            "docker build -f .Dockerfile -t crystal.kemal .",
            "docker run -td crystal.kemal > cid.txt",
            "docker cp `cat cid.txt`:/opt/web/bin .",
            "doctl compute droplet create crystal-kemal --user-data-file user_data.yml",
            "doctl compute droplet get crystal-kemal > ip.txt",
            "ssh -i /keys/id root@`cat ip.txt` 'systemctl enable web'",
            "ssh root@`cat ip.txt` reboot",
            "sleep 30",
            HEALTH_CHECK,
            collect_command("crystal", "kemal"),
            "doctl compute droplet delete -f crystal-kemal",
        ]
        assert (matrix / "crystal" / "kemal" / "bin").is_dir()

    def test_top_level_binary_copy(self, generator, matrix):
        write(matrix / "crystal" / "kemal" / "config.yaml", "binaries: [server]\n")

        result = generator.generate("crystal", "kemal", "digitalocean", OPTIONS)

        assert "docker cp `cat cid.txt`:/opt/web/server server" in result.commands

    def test_container_provider_skips_binary_extraction(self, generator):
        result = generator.generate("crystal", "kemal", "docker", OPTIONS)
        assert not any("cid.txt" in command for command in result.commands)

    def test_collect_and_clean_disabled(self, generator):
        options = dict(OPTIONS, collect='off', clean='off')
        result = generator.generate("ruby", "rails", "docker", options)

        assert result.commands == [
            "docker build -f .Dockerfile -t ruby.rails .",
            "docker inspect ruby.rails > ip.txt",
            HEALTH_CHECK,
        ]

    def test_build_file_format(self, generator, matrix):
        generator.generate("ruby", "rails", "docker", dict(OPTIONS, collect='off', clean='off'))

        assert (matrix / "ruby" / "rails" / ".Makefile").read_text() == (
            "build:\n"
            "\t docker build -f .Dockerfile -t ruby.rails .\n"
            "\t docker inspect ruby.rails > ip.txt\n"
            f"\t {HEALTH_CHECK}\n"
        )

    def test_unknown_provider(self, generator):
        with pytest.raises(UnknownProvider):
            generator.generate("ruby", "rails", "linode", OPTIONS)


class TestGenerateAll:
    """Test matrix-wide generation."""

    def test_every_framework_generated(self, generator, matrix):
        report = generator.generate_all("docker", OPTIONS)

        assert report.ok
        assert [(r.language, r.framework) for r in report.results] == [
            ("crystal", "kemal"),
            ("ruby", "rails"),
            ("ruby", "sinatra"),
        ]
        assert (matrix / "ruby" / "sinatra" / ".Makefile").exists()

    def test_broken_framework_does_not_stop_the_run(self, generator, matrix):
        (matrix / "ruby" / "rails" / "config.yaml").write_text("- not a mapping\n")

        report = generator.generate_all("docker", OPTIONS)

        assert not report.ok
        assert list(report.failures) == ["ruby/rails"]
        assert [(r.language, r.framework) for r in report.results] == [
            ("crystal", "kemal"),
            ("ruby", "sinatra"),
        ]

    def test_malformed_template_does_not_stop_the_run(self, generator, matrix):
        (matrix / "ruby" / "Dockerfile").write_text("FROM ruby\n{{#files}}unclosed\n")

        report = generator.generate_all("docker", OPTIONS)

        assert sorted(report.failures) == ["ruby/rails", "ruby/sinatra"]
        assert all(isinstance(exc, TemplateSyntaxError) for exc in report.failures.values())
        assert [(r.language, r.framework) for r in report.results] == [("crystal", "kemal")]

    def test_unknown_provider_aborts(self, generator):
        with pytest.raises(UnknownProvider):
            generator.generate_all("linode", OPTIONS)
