"""Shared fixtures for archscan tests."""

import pytest
from pathlib import Path


USER_ENTITY = r"""<?php

namespace App\Entity;

use Doctrine\ORM\Mapping as ORM;

#[ORM\Entity]
#[ORM\Table(name: 'users')]
class User
{
    private int $id;
    private string $email;

    public function getId(): int
    {
        return $this->id;
    }

    public function getEmail(): string
    {
        return $this->email;
    }
}
"""

USER_REPOSITORY = r"""<?php

namespace App\Repository;

use App\Entity\User;
use Doctrine\Bundle\DoctrineBundle\Repository\ServiceEntityRepository;

class UserRepository extends ServiceEntityRepository
{
    public function __construct()
    {
        parent::__construct(User::class);
    }

    public function findActive(): array
    {
        return [];
    }
}
"""

USER_SERVICE = r"""<?php

namespace App\Service;

use App\Repository\UserRepository;

class UserService
{
    private UserRepository $users;

    public function __construct(UserRepository $users)
    {
        $this->users = $users;
    }

    public function deactivate(int $id): void
    {
        $this->users->findActive();
    }
}
"""

USER_CONTROLLER = r"""<?php

namespace App\Controller;

use Symfony\Bundle\FrameworkBundle\Controller\AbstractController;

class UserController extends AbstractController
{
    public function index()
    {
        return null;
    }
}
"""

ROUTED_CONTROLLER = r"""<?php

namespace App\Controller;

use App\Service\UserService;
use Symfony\Bundle\FrameworkBundle\Controller\AbstractController;
use Symfony\Component\Routing\Attribute\Route;

class AccountController extends AbstractController
{
    public function __construct(private UserService $service)
    {
    }

    #[Route('/accounts', methods: ['GET', 'POST'])]
    public function index()
    {
        return null;
    }

    #[Route(path: '/accounts/{id}')]
    public function show(int $id)
    {
        return null;
    }

    private function helper(): void
    {
    }
}
"""

REQUEST_SUBSCRIBER = r"""<?php

namespace App\EventSubscriber;

use Symfony\Component\EventDispatcher\EventSubscriberInterface;

class RequestSubscriber implements EventSubscriberInterface
{
    public static function getSubscribedEvents(): array
    {
        return [
            'kernel.request' => 'onRequest',
            'kernel.response' => 'onResponse',
            'kernel.request' => 'onLateRequest',
        ];
    }

    public function onRequest($event): void
    {
    }

    public function onResponse($event): void
    {
    }
}
"""

EXCEPTION_LISTENER = r"""<?php

namespace App\EventListener;

use Symfony\Component\EventDispatcher\Attribute\AsEventListener;

#[AsEventListener(event: 'kernel.exception', method: 'onException')]
class ExceptionListener
{
    public function onException($event): void
    {
    }
}
"""

BROKEN_SOURCE = "<?php\n\nclass BrokenController extends AbstractController {\n    public function index( {\n"


@pytest.fixture
def php_sources():
    """Sample PHP sources keyed by class name."""
    return {
        "User": USER_ENTITY,
        "UserRepository": USER_REPOSITORY,
        "UserService": USER_SERVICE,
        "UserController": USER_CONTROLLER,
        "AccountController": ROUTED_CONTROLLER,
        "RequestSubscriber": REQUEST_SUBSCRIBER,
        "ExceptionListener": EXCEPTION_LISTENER,
        "BrokenController": BROKEN_SOURCE,
    }


@pytest.fixture
def write_php(tmp_path):
    """Return a helper that writes a file under tmp_path and returns its path."""

    def _write(relative: str, source: str) -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(source)
        return path

    return _write


@pytest.fixture
def user_project(tmp_path, write_php):
    """Project with an entity, its repository and a service using the repository."""
    write_php("src/Entity/User.php", USER_ENTITY)
    write_php("src/Repository/UserRepository.php", USER_REPOSITORY)
    write_php("src/Service/UserService.php", USER_SERVICE)
    return tmp_path


@pytest.fixture
def full_project(user_project, write_php):
    """user_project plus controllers, an event subscriber and an event listener."""
    write_php("src/Controller/UserController.php", USER_CONTROLLER)
    write_php("src/Controller/AccountController.php", ROUTED_CONTROLLER)
    write_php("src/EventSubscriber/RequestSubscriber.php", REQUEST_SUBSCRIBER)
    write_php("src/EventListener/ExceptionListener.php", EXCEPTION_LISTENER)
    return user_project
