"""Shared fixtures for ndmap tests."""

import math

import matplotlib
matplotlib.use("Agg")

import matplotlib.pyplot as plt
import pytest

from ndmap.models import Edge, Node


NODES_CSV = """id,x_KPCA,y_KPCA,cluster,name,Hyperrealism,Sensory Sensitivity,Cognitive Empathy,Systemizing,Attention,Flexibility,Motivation,Visual vs Verbal Thinking
User 1,0.0,0.0,1,Ada,5,6,7,8,3,4,2,9
User 2,1.0,0.5,1,Bea,1,,3,4,5,6,7,8
User 3,0.5,1.0,1,Cal,9,9,9,9,9,9,9,9
User 4,4.0,4.0,2,Dan,2,2,2,2,2,2,2,2
User 5,4.5,3.0,nan,Eve,3,3,3,3,3,3,3,3
User 6,,2.0,2,Fay,4,4,4,4,4,4,4,4
"""

EDGES_CSV = """source,target,weight
User 1,User 2,2
User 2,User 3,abc
User 3,User 9,1
User 4,User 6,1
User 1,,1
"""


@pytest.fixture(autouse=True)
def _close_figures():
    yield
    plt.close("all")


@pytest.fixture
def nodes_csv():
    return NODES_CSV


@pytest.fixture
def edges_csv():
    return EDGES_CSV


@pytest.fixture
def triangle_nodes():
    """Three clustered nodes plus one unclustered and one without position."""
    return [
        Node("a", 0.0, 0.0, cluster="1", traits={"Attention": 1.0}),
        Node("b", 2.0, 0.0, cluster="1", traits={"Attention": 9.0}),
        Node("c", 1.0, 2.0, cluster="1", traits={"Attention": 5.0}),
        Node("d", 5.0, 5.0, cluster=None, traits={}),
        Node("e", math.nan, 1.0, cluster="1", traits={"Attention": 3.0}),
    ]


@pytest.fixture
def triangle_edges():
    return [
        Edge("a", "b", 2.0),
        Edge("b", "c", 1.0),
        Edge("c", "ghost", 1.0),
        Edge("a", "e", 1.0),
    ]
