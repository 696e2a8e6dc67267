from pathlib import Path

from click.testing import CliRunner

from tabula.cli.main import cli

RESOURCE_DIR = Path(__file__).parent / 'resources'


def test_cli_deploy_and_list(tmp_path):
    dsn = f"sqlite+aiosqlite:///{tmp_path}/cli.sqlite"
    runner = CliRunner()

    result = runner.invoke(cli, ['db', 'create-schema', '--dsn', dsn])
    assert result.exit_code == 0, result.output
    assert 'Form tables created' in result.output

    result = runner.invoke(cli, [
        'form', 'deploy', str(RESOURCE_DIR / 'simple.form'),
        '--name', 'simple', '--tenant', 'flowable', '--dsn', dsn
    ])
    assert result.exit_code == 0, result.output
    assert 'Deployed 1 form(s)' in result.output

    result = runner.invoke(cli, ['form', 'deploy', str(RESOURCE_DIR), '--name', 'all', '--dsn', dsn])
    assert result.exit_code == 0, result.output
    assert 'Deployed 4 form(s)' in result.output

    result = runner.invoke(cli, ['form', 'deployments', '--tenant', 'flowable', '--dsn', dsn])
    assert result.exit_code == 0, result.output
    lines = result.output.strip().splitlines()
    assert len(lines) == 1
    assert '\tsimple\tflowable\t' in lines[0]

    result = runner.invoke(cli, ['form', 'deployments', '--key-like', 'date', '--dsn', dsn])
    assert result.exit_code == 0, result.output
    assert '\tall\t' in result.output

    result = runner.invoke(cli, ['db', 'drop-schema', '--dsn', dsn, '--yes'])
    assert result.exit_code == 0, result.output


def test_cli_deploy_invalid_form(tmp_path):
    dsn = f"sqlite+aiosqlite:///{tmp_path}/cli.sqlite"
    broken = tmp_path / 'broken.form'
    broken.write_text('{"name": "no key"}', encoding='utf-8')

    runner = CliRunner()
    assert runner.invoke(cli, ['db', 'create-schema', '--dsn', dsn]).exit_code == 0

    result = runner.invoke(cli, ['form', 'deploy', str(broken), '--dsn', dsn])
    assert result.exit_code != 0
    assert 'Invalid form model' in result.output
