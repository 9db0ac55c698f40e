from .clique import clique
from ..base import check_ids
import numpy as np

class cluster:
	def __init__(self,cluster_algorithm,*cluster_algorithm_args,**cluster_algorithm_kwargs):
		"""
			聚类接口，在这里只提供简单的聚类方法。
			参数：
				①cluster_algorithm：str，表示所使用的聚类算法。当前可使用的聚类算法有'clique'
				②*cluster_algorithm_args,**cluster_algorithm_kwargs：传入聚类算法的参数
		"""
		if cluster_algorithm == 'clique':
			self._train_algorithm = clique
		else:
			raise ValueError("cluster_algorithm currently must be 'clique'")
		self._cluster_algorithm_args,self._cluster_algorithm_kwargs = cluster_algorithm_args,cluster_algorithm_kwargs
		self._clusters = None

	clusters = property(lambda self:self._clusters)

	def train(self,data,ids=None):
		self._clusters = self._train_algorithm(data,*self._cluster_algorithm_args,ids=ids,**self._cluster_algorithm_kwargs)
		return self._clusters

	#各个簇的质心，只计算簇所在子空间的维度，忽略NaN
	def centroids(self,data,ids=None):
		if self._clusters is None:
			raise ValueError('train must be called before centroids')
		data = np.asarray(data,dtype=np.float64)
		ids = check_ids(ids,data.shape[0])
		id_to_index = {id_:index for index,id_ in enumerate(ids)}

		centroids = []
		for subspace_cluster in self._clusters:
			indices = np.sort(np.fromiter((id_to_index[id_] for id_ in subspace_cluster.ids),np.intp,subspace_cluster.size))
			centroids.append(np.nanmean(data[np.ix_(indices,subspace_cluster.dims)],axis=0))
		return centroids
