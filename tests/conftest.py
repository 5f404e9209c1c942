"""Pytest configuration for tracer tests."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

SVC_SOURCE = """\
package svc

import (
	"bytes"
	"context"
	_ "embed"
	stdhttp "net/http"
)

type noMethodsWithContext interface {
	withoutContext()
}

// Client is the interface wrapped by generated code.
type Client interface {
	noMethodsWithContext
	// Get fetches a key.
	Get(ctx context.Context, key string) (int, error)
	Put(context.Context, string, []byte) error
	Buffer(context.Context, bytes.Buffer) *stdhttp.Request
	Lookup(ctx context.Context, m map[int]string, a [10]int) interface{ Foo(string) int }
	Close()
}

type streamer interface {
	Stream(context.Context) chan int
}

type Getter[T any] interface {
	Get() T
}

type client struct {
	http  *stdhttp.Client
	a, b  int
	timer Timer
	*Base
}

type Timer interface {
	Timing(string, int64)
}

type Base struct{}
"""

SVC_TEST_SOURCE = """\
package svc_test

func helper() {}
"""


@pytest.fixture
def svc_source() -> str:
    return SVC_SOURCE


@pytest.fixture
def svc_dir(tmp_path: Path) -> Path:
    """A Go module example.com/app with package svc in its svc directory."""
    (tmp_path / "go.mod").write_text("module example.com/app\n\ngo 1.21\n")
    pkg = tmp_path / "svc"
    pkg.mkdir()
    (pkg / "client.go").write_text(SVC_SOURCE)
    (pkg / "client_test.go").write_text(SVC_TEST_SOURCE)
    return pkg
