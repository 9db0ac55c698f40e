import numpy as np
import pytest

#200个背景数据对象均匀分布在[0,100]x[0,100]的格点上，200个数据对象集中在[40,60]x[40,60]内
def make_dense_square():
	background = [(i*100./19,j*100./9) for i in range(20) for j in range(10)]
	square = [(41.+i,41.+2*j) for i in range(20) for j in range(10)]
	return np.array(background+square,np.float64)

@pytest.fixture
def dense_square():
	return make_dense_square()

@pytest.fixture
def square_ids():
	return frozenset(range(200,400))
