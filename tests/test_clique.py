import logging
import numpy as np
import pytest

from gridclust.base import ConfigurationError
from gridclust.clustering.clique import clique,clique_engine


def run_engine(X,xsi,tau,prune=False,max_dim=None):
	engine = clique_engine(np.asarray(X,np.float64),list(range(len(X))),xsi,tau,prune,max_dim)
	clusters = engine.run()
	return engine,clusters


@pytest.mark.parametrize('prune',[False,True])
def test_dense_square(dense_square,square_ids,prune):
	engine,clusters = run_engine(dense_square,10,.1,prune)

	one_dim = engine.dense_subspaces(1)
	assert [s.dims for s in one_dim]==[(0,),(1,)]
	for s in one_dim:
		assert [u.intervals[0].index for u in s.units]==[4,5]
		assert s.coverage==240

	two_dim = engine.dense_subspaces(2)
	assert len(two_dim)==1 and two_dim[0].dims==(0,1)
	assert len(two_dim[0].units)==4

	assert [c.dims for c in clusters]==[(0,),(1,),(0,1)]
	square_cluster = clusters[-1]
	assert square_ids<=square_cluster.ids
	assert square_cluster.size==208


def test_dense_square_clique_function(dense_square,square_ids):
	clusters = clique(dense_square,10,.1)
	assert len([c for c in clusters if c.dims==(0,1)])==1
	assert square_ids<=clusters[-1].ids


def test_dense_square_invariants(dense_square):
	engine,clusters = run_engine(dense_square,10,.1)
	total = dense_square.shape[0]
	for level in range(1,engine.k+1):
		for s in engine.dense_subspaces(level):
			seen = set()
			for u in s.units:
				assert u.dims==s.dims
				assert u.count/total>=.1
				assert seen.isdisjoint(u.ids)
				seen.update(u.ids)
			assert len(seen)==s.coverage

			extracted = [id_ for c in s.determine_clusters() for id_ in c.ids]
			assert len(extracted)==len(set(extracted))
			assert set(extracted)==seen


def test_join_monotonicity(dense_square):
	engine,_ = run_engine(dense_square,10,.1)
	parents = {u.intervals[0]:u for s in engine.dense_subspaces(1) for u in s.units}
	for u in engine.dense_subspaces(2)[0].units:
		u1,u2 = parents[u.intervals[0]],parents[u.intervals[1]]
		assert u.ids==u1.ids&u2.ids
		assert u.count<=min(u1.count,u2.count)


def test_determinism(dense_square):
	assert clique(dense_square,10,.1)==clique(dense_square,10,.1)
	assert clique(dense_square,10,.1,prune=True)==clique(dense_square,10,.1,prune=True)


def test_repeated_point():
	X = [[1.5,-2.,7.]]*50
	clusters = clique(X,5,.01)
	assert len(clusters)==7
	assert [len(c.dims) for c in clusters]==[1,1,1,2,2,2,3]
	for c in clusters:
		assert c.ids==frozenset(range(50))
	assert clusters[-1].dims==(0,1,2)


def test_repeated_point_units():
	engine,_ = run_engine([[4.,4.]]*10,5,.01)
	for s in engine.dense_subspaces(1):
		assert len(s.units)==1
		assert s.units[0].selectivity(10)==1.


def test_high_tau_uniform_data_has_no_clusters():
	X = np.random.default_rng(0).uniform(0,100,size=(100,2))
	assert clique(X,10,.99)==[]


def test_high_tau_single_interval_covers_everything():
	X = np.random.default_rng(1).uniform(0,100,size=(100,2))
	clusters = clique(X,1,.99)
	assert [c.dims for c in clusters]==[(0,),(1,),(0,1)]
	for c in clusters:
		assert c.size==100


def test_max_dim(dense_square):
	clusters = clique(dense_square,10,.1,max_dim=1)
	assert [c.dims for c in clusters]==[(0,),(1,)]


def test_separated_dense_units_give_separate_clusters():
	X = [[0.]]*10+[[50.]]*2+[[100.]]*10
	clusters = clique(X,10,.3)
	assert len(clusters)==2
	assert clusters[0].ids==frozenset(range(10))
	assert clusters[1].ids==frozenset(range(12,22))


def test_custom_ids():
	X = [[0.,0.],[0.,0.],[9.,9.]]
	clusters = clique(X,2,.5,ids=['a','b','c'])
	assert clusters[-1].dims==(0,1)
	assert clusters[-1].ids==frozenset(['a','b'])


def test_nan_coordinates_use_first_interval():
	X = [[np.nan,0.],[0.,0.],[1.,0.],[10.,10.]]
	clusters = clique(X,2,.5)
	assert clusters[0].dims==(0,)
	assert clusters[0].ids==frozenset([0,1,2])


def test_empty_input():
	assert clique(np.empty((0,3)),5,.1)==[]
	assert clique([],5,.1)==[]


def test_invalid_input():
	with pytest.raises(ConfigurationError):
		clique([[1.]],0,.1)
	with pytest.raises(ConfigurationError):
		clique([[1.]],3,1.)
	with pytest.raises(ConfigurationError):
		clique([1.,2.],3,.1)
	with pytest.raises(ConfigurationError):
		clique([[1.],[2.]],3,.1,ids=[1])


def test_dense_subspaces_level_check(dense_square):
	engine,_ = run_engine(dense_square,10,.1)
	with pytest.raises(ValueError):
		engine.dense_subspaces(0)
	with pytest.raises(ValueError):
		engine.dense_subspaces(engine.k+1)


def test_logging(dense_square,caplog):
	with caplog.at_level(logging.INFO,logger='gridclust.clustering.clique'):
		clique(dense_square,10,.1)
	assert '1-dimensional dense subspaces: 2' in caplog.text
	assert '2-dimensional clusters: 1' in caplog.text
