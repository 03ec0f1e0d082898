"""Shared fixtures for replant tests."""
from pathlib import Path

import pytest


PUBSPEC = """\
name: my_app
description: A sample todo app
version: 1.2.0+3
environment:
  sdk: ">=3.2.0 <4.0.0"
  flutter: ">=3.16.0"
dependencies:
  flutter:
    sdk: flutter
  flutter_riverpod: ^2.4.0
  dio: ^5.4.0
  go_router: ^14.0.0
  json_annotation: ^4.9.0
dev_dependencies:
  build_runner: ^2.4.6
  json_serializable: ^6.7.1
flutter:
  uses-material-design: true
  assets:
    - assets/images/
  fonts:
    - family: Inter
      fonts:
        - asset: fonts/Inter.ttf
"""

MAIN_DART = """\
import 'package:flutter/material.dart';

void main() {
  runApp(const MyApp());
}

class MyApp extends StatelessWidget {
  const MyApp({super.key});

  @override
  Widget build(BuildContext context) {
    return MaterialApp(
      theme: ThemeData(primaryColor: Color(0xFF6366F1), fontFamily: 'Inter'),
      home: const HomeScreen(),
    );
  }
}
"""

USER_MODEL = """\
import 'post.dart';

class User {
  final int id;
  final String name;
  final String? email;
  final List<Post> posts;

  User({required this.id, required this.name, this.email, this.posts = const []});

  factory User.fromJson(Map<String, dynamic> json) => User(
        id: json['id'] as int,
        name: json['name'] as String,
      );
}
"""

POST_MODEL = """\
class Post {
  final int id;
  final String title;
  final int userId;

  const Post({required this.id, required this.title, required this.userId});
}
"""

HOME_SCREEN = """\
import 'package:flutter/material.dart';
import 'package:flutter_riverpod/flutter_riverpod.dart';

class HomeScreen extends ConsumerWidget {
  const HomeScreen({super.key});

  @override
  Widget build(BuildContext context, WidgetRef ref) {
    final todos = ref.watch(todoListProvider);
    final user = ref.read(userProvider);
    return Scaffold(
      appBar: AppBar(title: const Text('Home')),
      floatingActionButton: FloatingActionButton(onPressed: () {}),
      body: ListView(
        children: [TodoTile(), ProfileCard()],
      ),
    );
  }
}
"""

USER_CARD = """\
import 'package:flutter/material.dart';

class UserCard extends StatelessWidget {
  final String name;
  final String? avatarUrl;

  const UserCard({super.key, required this.name, this.avatarUrl});

  @override
  Widget build(BuildContext context) {
    return Card(child: Text(name));
  }
}
"""

TODO_PROVIDER = """\
import 'package:flutter_riverpod/flutter_riverpod.dart';

final todoListProvider = StateProvider<List<String>>((ref) => []);
"""

API_SERVICE = """\
import 'package:dio/dio.dart';

class ApiService {
  final Dio dio = Dio();
}
"""

APP_THEME = """\
import 'package:flutter/material.dart';

class AppColors {
  static const Color accent = Color(0xFFFF5722);
  static final Color surface = Color(0xFFFAFAFA);
}
"""

WIDGET_TEST = """\
import 'package:flutter_test/flutter_test.dart';

void main() {
  testWidgets('smoke', (tester) async {});
}
"""

SAMPLE_FILES = {
    "pubspec.yaml": PUBSPEC,
    "lib/main.dart": MAIN_DART,
    "lib/models/user.dart": USER_MODEL,
    "lib/models/post.dart": POST_MODEL,
    "lib/models/user.g.dart": "// GENERATED CODE - DO NOT MODIFY BY HAND\n",
    "lib/screens/home_screen.dart": HOME_SCREEN,
    "lib/widgets/user_card.dart": USER_CARD,
    "lib/providers/todo_provider.dart": TODO_PROVIDER,
    "lib/services/api_service.dart": API_SERVICE,
    "lib/theme/app_theme.dart": APP_THEME,
    "test/widget_test.dart": WIDGET_TEST,
}


def make_export(files: dict[str, str], root_name: str = "my-app") -> str:
    """Render ``files`` in the flattened single-file export format."""
    sep = "=" * 48
    lines = ["Directory structure:", f"└── {root_name}/"]
    for path in files:
        lines.append(f"    ├── {path}")
    parts = ["\n".join(lines), ""]
    for path, content in files.items():
        parts.append(f"{sep}\nFILE: {path}\n{sep}\n{content}\n")
    return "\n".join(parts)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point every config layer at a temporary directory.

    Tests never read ~/.config/replant, a .replant.toml or .env from
    the real working directory, or REPLANT_* variables from the shell.
    """
    import replant.core.config_service as config_service

    home = tmp_path / "config-home"
    home.mkdir()
    work = tmp_path / "cwd"
    work.mkdir()
    monkeypatch.chdir(work)
    monkeypatch.setattr(config_service, "_global_config_dir", lambda: home)
    for env_var in config_service.ENV_VAR_MAP:
        monkeypatch.delenv(env_var, raising=False)
    monkeypatch.delenv("REPLANT_DEBUG", raising=False)
    config_service.reset_config_service()
    yield home
    config_service.reset_config_service()


@pytest.fixture
def sample_project(tmp_path) -> Path:
    """A small layer-first Flutter project on disk."""
    root = tmp_path / "my_app"
    for rel, content in SAMPLE_FILES.items():
        target = root / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)
    return root


@pytest.fixture
def sample_export_text() -> str:
    return make_export(SAMPLE_FILES)


@pytest.fixture
def sample_export(tmp_path, sample_export_text) -> Path:
    path = tmp_path / "my-app-export.txt"
    path.write_text(sample_export_text)
    return path
