"""Tests for the migration orchestrator."""

import asyncio

import pytest
from unittest.mock import AsyncMock, MagicMock, Mock, call, patch

from gitea_migrate.api.exceptions import APIError, NotFoundError
from gitea_migrate.api.gitea import GiteaClient
from gitea_migrate.api.gitlab import GitLabClient
from gitea_migrate.config.config import DestinationConfig, SourceConfig
from gitea_migrate.migration.orchestrator import MigrationOrchestrator, repo_name
from gitea_migrate.migration.progress import ProgressReporter
from gitea_migrate.models.deploy_key import DeployKey
from gitea_migrate.models.outcome import OutcomeStatus, RequestOutcome
from gitea_migrate.models.owner import Owner
from gitea_migrate.models.project import Project

CREATED = RequestOutcome(status=OutcomeStatus.CREATED)
ATTACHED = RequestOutcome(status=OutcomeStatus.ATTACHED)
EXISTS = RequestOutcome(status=OutcomeStatus.ALREADY_EXISTS, status_code=409)


def make_project(project_id, full_path, visibility='private', description=None):
    namespace, _, path = full_path.rpartition('/')
    return Project(
        id=project_id,
        name=path,
        full_name=full_path.replace('/', ' / '),
        path=path,
        namespace_path=namespace,
        full_path=full_path,
        http_url=f'https://gitlab.example.com/{full_path}.git',
        description=description,
        visibility=visibility,
    )


def make_key(key_id):
    return DeployKey(id=key_id, title=f'key-{key_id}', key=f'ssh-ed25519 AAA{key_id}')


class TestRepoName:
    """Test destination repository name derivation."""

    @pytest.mark.parametrize(
        'full_path, expected',
        [
            ('group/subgroup/project', 'subgroup-project'),
            ('group/project', 'project'),
            ('group/a/b/project', 'a-b-project'),
            ('project', 'project'),
        ],
    )
    def test_repo_name(self, full_path, expected):
        """Test the top-level namespace is dropped and the rest hyphenated."""
        assert repo_name(make_project(1, full_path)) == expected


class OrchestratorTestCase:
    """Shared fixtures for orchestrator tests."""

    def setup_method(self):
        """Set up test fixtures."""
        self.source = Mock(spec=GitLabClient)
        self.source.config = SourceConfig(
            url='https://gitlab.example.com', token='lab-token', username='alice-lab'
        )
        self.destination = Mock(spec=GiteaClient)
        self.progress = Mock(spec=ProgressReporter)
        self.owner = Owner(id=42, name='Alice', username='alice')
        self.orchestrator = MigrationOrchestrator(
            self.source, self.destination, self.progress
        )


class TestMigrateProjects(OrchestratorTestCase):
    """Test the repository import pass."""

    @pytest.mark.asyncio
    async def test_outcomes_are_bucketed(self):
        """Test created, existing and failing projects land in their buckets."""
        e1 = make_project(1, 'group/one')
        e2 = make_project(2, 'group/two')
        e3 = make_project(3, 'group/three')
        outcomes = {
            'one': CREATED,
            'two': EXISTS,
            'three': RequestOutcome(
                status=OutcomeStatus.FAILED,
                status_code=500,
                status_text='Internal Server Error',
                message='disk quota',
            ),
        }

        async def create_by_import(**kwargs):
            return outcomes[kwargs['repo_name']]

        self.destination.create_by_import = AsyncMock(side_effect=create_by_import)

        result = await self.orchestrator.migrate_projects([e1, e2, e3], self.owner)

        assert result.succeeded == [e1]
        assert result.skipped == [e2]
        assert result.failed == [e3]
        assert len(result.errors) == 1
        assert result.errors[0] == (
            'Failed to migrate alice/three from https://gitlab.example.com/group/three.git:'
            '\n  Error 500 Internal Server Error disk quota'
        )
        assert result.errors[0].endswith('disk quota')

    @pytest.mark.asyncio
    async def test_every_project_in_exactly_one_bucket(self):
        """Test bucket sizes add up to the number of projects."""
        projects = [make_project(i, f'group/p{i}') for i in range(6)]
        cycle = [CREATED, EXISTS, RequestOutcome(status=OutcomeStatus.FAILED)]
        self.destination.create_by_import = AsyncMock(
            side_effect=[cycle[i % 3] for i in range(6)]
        )

        result = await self.orchestrator.migrate_projects(projects, self.owner)

        assert result.total == len(projects)
        assert len(result.succeeded) == len(result.skipped) == len(result.failed) == 2

    @pytest.mark.asyncio
    async def test_conflict_is_not_an_error(self):
        """Test an existing repository never produces an error line."""
        project = make_project(1, 'group/app')
        self.destination.create_by_import = AsyncMock(return_value=EXISTS)

        result = await self.orchestrator.migrate_projects([project], self.owner)

        assert result.skipped == [project]
        assert result.failed == []
        assert result.errors == []

    @pytest.mark.asyncio
    async def test_request_arguments(self):
        """Test clone credentials, owner and visibility are passed through."""
        project = make_project(1, 'group/sub/app', visibility='public', description='d')
        self.destination.create_by_import = AsyncMock(return_value=CREATED)

        await self.orchestrator.migrate_projects([project], self.owner)

        self.destination.create_by_import.assert_awaited_once_with(
            clone_url='https://gitlab.example.com/group/sub/app.git',
            auth_username='alice-lab',
            auth_token='lab-token',
            repo_name='sub-app',
            description='d',
            owner_id=42,
            public=True,
        )

    @pytest.mark.asyncio
    async def test_progress_calls(self):
        """Test one start, one increment per project and one stop."""
        projects = [make_project(i, f'group/p{i}') for i in range(3)]
        self.destination.create_by_import = AsyncMock(return_value=CREATED)

        await self.orchestrator.migrate_projects(projects, self.owner)

        self.progress.start.assert_called_once_with(3)
        assert self.progress.increment.call_count == 3
        self.progress.stop.assert_called_once_with()

    @pytest.mark.asyncio
    async def test_empty_selection(self):
        """Test an empty selection still starts and stops the reporter."""
        self.destination.create_by_import = AsyncMock()

        result = await self.orchestrator.migrate_projects([], self.owner)

        assert result.total == 0
        self.progress.start.assert_called_once_with(0)
        self.progress.increment.assert_not_called()
        self.progress.stop.assert_called_once_with()
        self.destination.create_by_import.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_progress_stopped_on_unexpected_error(self):
        """Test the reporter is settled even when a request raises."""
        self.destination.create_by_import = AsyncMock(side_effect=RuntimeError('bug'))

        with pytest.raises(RuntimeError):
            await self.orchestrator.migrate_projects(
                [make_project(1, 'group/app')], self.owner
            )

        self.progress.increment.assert_called_once_with()
        self.progress.stop.assert_called_once_with()

    @pytest.mark.asyncio
    async def test_requests_run_concurrently(self):
        """Test all imports are in flight before any of them completes."""
        projects = [make_project(i, f'group/p{i}') for i in range(3)]
        in_flight = 0
        all_started = asyncio.Event()

        async def create_by_import(**kwargs):
            nonlocal in_flight
            in_flight += 1
            if in_flight == len(projects):
                all_started.set()
            await all_started.wait()
            return CREATED

        self.destination.create_by_import = AsyncMock(side_effect=create_by_import)

        result = await asyncio.wait_for(
            self.orchestrator.migrate_projects(projects, self.owner), timeout=5
        )

        assert len(result.succeeded) == 3

    @pytest.mark.asyncio
    async def test_default_progress_reporter(self):
        """Test the orchestrator works without a reporter."""
        orchestrator = MigrationOrchestrator(self.source, self.destination)
        self.destination.create_by_import = AsyncMock(return_value=CREATED)

        result = await orchestrator.migrate_projects(
            [make_project(1, 'group/app')], self.owner
        )

        assert len(result.succeeded) == 1


class TestMigrateKeys(OrchestratorTestCase):
    """Test the deploy key pass."""

    @pytest.mark.asyncio
    async def test_key_outcomes(self):
        """Test fetch failures, keyless projects and per-key outcomes."""
        broken = make_project(1, 'group/broken')
        keyless = make_project(2, 'group/keyless')
        keyed = make_project(3, 'group/sub/keyed')
        keys = {
            1: NotFoundError(
                'API request failed: 404 Project Not Found',
                status_code=404,
                response_data={'message': '404 Project Not Found'},
                reason='Not Found',
            ),
            2: [],
            3: [make_key(1), make_key(2)],
        }

        async def list_deploy_keys(project):
            value = keys[project.id]
            if isinstance(value, Exception):
                raise value
            return value

        async def attach_deploy_key(owner_login, name, key):
            return ATTACHED if key.id == 1 else EXISTS

        self.source.list_deploy_keys = AsyncMock(side_effect=list_deploy_keys)
        self.destination.attach_deploy_key = AsyncMock(side_effect=attach_deploy_key)

        result = await self.orchestrator.migrate_keys([broken, keyless, keyed], self.owner)

        assert result.failed == [broken]
        assert result.errors == [
            'Failed to migrate keys for alice/broken from '
            'https://gitlab.example.com/group/broken.git:'
            '\n  Error 404 Not Found 404 Project Not Found'
        ]
        # One project may be filed once per key
        assert result.succeeded == [keyed]
        assert result.skipped == [keyed]
        assert keyless not in result.succeeded + result.skipped + result.failed
        self.destination.attach_deploy_key.assert_has_awaits(
            [call('alice', 'sub-keyed', make_key(1)), call('alice', 'sub-keyed', make_key(2))],
            any_order=True,
        )

    @pytest.mark.asyncio
    async def test_keys_fetched_sequentially_in_order(self):
        """Test key fetches follow the project order."""
        projects = [make_project(i, f'group/p{i}') for i in range(3)]
        self.source.list_deploy_keys = AsyncMock(return_value=[])
        self.destination.attach_deploy_key = AsyncMock()

        await self.orchestrator.migrate_keys(projects, self.owner)

        assert self.source.list_deploy_keys.await_args_list == [
            call(project) for project in projects
        ]
        self.destination.attach_deploy_key.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_attach_failure(self):
        """Test a failed attachment is recorded with an error line."""
        project = make_project(1, 'group/app')
        self.source.list_deploy_keys = AsyncMock(return_value=[make_key(1)])
        self.destination.attach_deploy_key = AsyncMock(
            return_value=RequestOutcome(
                status=OutcomeStatus.FAILED,
                status_code=404,
                status_text='Not Found',
            )
        )

        result = await self.orchestrator.migrate_keys([project], self.owner)

        assert result.failed == [project]
        assert result.errors[0].startswith('Failed to migrate keys for alice/app from')
        assert result.errors[0].endswith('Error 404 Not Found')

    @pytest.mark.asyncio
    async def test_network_error_while_fetching(self):
        """Test transport failures during the fetch keep their message."""
        project = make_project(1, 'group/app')
        self.source.list_deploy_keys = AsyncMock(
            side_effect=APIError('Network error: refused')
        )
        self.destination.attach_deploy_key = AsyncMock()

        result = await self.orchestrator.migrate_keys([project], self.owner)

        assert result.failed == [project]
        assert result.errors[0].endswith('Error Network error: refused')

    @pytest.mark.asyncio
    async def test_progress_counts_projects_not_keys(self):
        """Test progress advances once per project regardless of key count."""
        projects = [make_project(i, f'group/p{i}') for i in range(3)]
        self.source.list_deploy_keys = AsyncMock(
            side_effect=[[make_key(1), make_key(2), make_key(3)], [], APIError('down')]
        )
        self.destination.attach_deploy_key = AsyncMock(return_value=ATTACHED)

        result = await self.orchestrator.migrate_keys(projects, self.owner)

        assert len(result.succeeded) == 3
        self.progress.start.assert_called_once_with(3)
        assert self.progress.increment.call_count == 3
        self.progress.stop.assert_called_once_with()


def _aiohttp_response(status, text='', headers=None, reason='OK'):
    response = MagicMock()
    response.status = status
    response.reason = reason
    response.headers = headers or {}
    response.text = AsyncMock(return_value=text)
    response.__aenter__.return_value = response
    response.__aexit__.return_value = None
    return response


class TestFailedImportsDoNotAbortBatch:
    """Test per-request transport and rate-limit failures stay per project."""

    def setup_method(self):
        """Set up test fixtures."""
        self.source = Mock(spec=GitLabClient)
        self.source.config = SourceConfig(
            url='https://gitlab.example.com', token='lab-token', username='alice-lab'
        )
        self.destination = GiteaClient(
            DestinationConfig(url='https://gitea.example.com', token='tea-token')
        )
        self.owner = Owner(id=42, name='Alice', username='alice')
        self.orchestrator = MigrationOrchestrator(
            self.source, self.destination, Mock(spec=ProgressReporter)
        )

    def _session(self, failures):
        def request(method, url, json=None, **kwargs):
            failure = failures.get(json['repo_name'])
            if isinstance(failure, Exception):
                raise failure
            return failure or _aiohttp_response(201, '{"id": 1}', reason='Created')

        session = MagicMock()
        session.request.side_effect = request
        session.__aenter__.return_value = session
        session.__aexit__.return_value = None
        return session

    @pytest.mark.asyncio
    async def test_timeout_is_filed_as_failed(self):
        """Test a timed out import fails alone and its sibling succeeds."""
        fast = make_project(1, 'group/fast')
        slow = make_project(2, 'group/slow')
        session = self._session({'slow': asyncio.TimeoutError()})

        with patch('aiohttp.ClientSession', return_value=session):
            result = await self.orchestrator.migrate_projects([fast, slow], self.owner)

        assert result.succeeded == [fast]
        assert result.failed == [slow]
        assert result.errors[0].endswith('Error Network error: TimeoutError')

    @pytest.mark.asyncio
    async def test_rate_limit_with_http_date_is_filed_as_failed(self):
        """Test a 429 with a date Retry-After fails alone."""
        ok = make_project(1, 'group/ok')
        limited = make_project(2, 'group/limited')
        session = self._session(
            {
                'limited': _aiohttp_response(
                    429,
                    '{"message": "slow down"}',
                    headers={'Retry-After': 'Wed, 21 Oct 2026 07:28:00 GMT'},
                    reason='Too Many Requests',
                )
            }
        )

        with patch('aiohttp.ClientSession', return_value=session):
            result = await self.orchestrator.migrate_projects([ok, limited], self.owner)

        assert result.succeeded == [ok]
        assert result.failed == [limited]
        assert result.errors[0].endswith('Error 429 Too Many Requests slow down')
