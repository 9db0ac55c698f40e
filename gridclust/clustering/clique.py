import logging
from scipy.cluster.hierarchy import DisjointSet
from ..base import check_array,check_ids,check_clique_params,partition_grid,log2_or_zero,ConfigurationError,SubspaceJoinError
import numpy as np

logger = logging.getLogger(__name__)

#按coverage递减排序，coverage相同时按维度排序
_coverage_order = lambda subspace:(-subspace.coverage,subspace.dims)

class interval:
	"""
		某一维度上的一个interval [lo,hi)
		index为该interval在该维度的所有intervals中的索引，两个intervals相邻当且仅当其维度相同且索引相差1
	"""
	__slots__ = ('_dim','_index','_lo','_hi')

	def __init__(self,dim,index,lo,hi):
		self._dim,self._index,self._lo,self._hi = int(dim),int(index),float(lo),float(hi)

	dim = property(lambda self:self._dim)
	index = property(lambda self:self._index)
	lo = property(lambda self:self._lo)
	hi = property(lambda self:self._hi)

	def __eq__(self,other):
		return isinstance(other,interval) and self._dim==other._dim and self._index==other._index

	def __hash__(self):
		return hash((self._dim,self._index))

	def __lt__(self,other):
		return (self._dim,self._index)<(other._dim,other._index)

	def __repr__(self):
		return 'd%u:[%.4g;%.4g)'%(self._dim,self._lo,self._hi)

	def contains(self,value):
		return self._lo<=value<self._hi

	def is_adjacent(self,other):
		return self._dim==other._dim and abs(self._index-other._index)==1

class unit:
	def __init__(self,intervals,ids):
		self._intervals,self._ids = tuple(intervals),frozenset(ids)
		dims = [ele.dim for ele in self._intervals]
		if any(dims[index]>=dims[index+1] for index in range(len(dims)-1)):
			raise ValueError('intervals of a unit must have strictly increasing dimensions, got %s'%(dims,))
		self._dims = tuple(dims)

	intervals = property(lambda self:self._intervals)
	ids = property(lambda self:self._ids)
	dims = property(lambda self:self._dims)
	count = property(lambda self:len(self._ids))

	def __repr__(self):
		return 'unit(%s,count=%u)'%(','.join(map(repr,self._intervals)),len(self._ids))

	def selectivity(self,total):
		return len(self._ids)/total if total>0 else 0.

	def is_dense(self,total,tau):
		return self.selectivity(total)>=tau

	#两个units的前k-2个intervals相同而最后一个interval的维度不同时才能合并
	def join(self,other,total,tau):
		intervals_1,intervals_2 = self._intervals,other._intervals
		if len(intervals_1)!=len(intervals_2) or intervals_1[:-1]!=intervals_2[:-1]:
			return None
		last_1,last_2 = intervals_1[-1],intervals_2[-1]
		if last_1.dim==last_2.dim:
			return None

		intervals = intervals_1[:-1]+((last_1,last_2) if last_1.dim<last_2.dim else (last_2,last_1))
		new_unit = unit(intervals,self._ids&other._ids)
		return new_unit if new_unit.is_dense(total,tau) else None

	#两个units具有common face，即只有一个维度上的intervals相邻，而其它维度上的intervals相同
	def is_neighbor(self,other):
		if self._dims!=other._dims:
			return False
		n_adjacent = 0
		for interval_1,interval_2 in zip(self._intervals,other._intervals):
			if interval_1==interval_2:
				continue
			if not interval_1.is_adjacent(interval_2):
				return False
			n_adjacent += 1
		return n_adjacent==1

class subspace_cluster:
	__slots__ = ('_dims','_ids')

	def __init__(self,dims,ids):
		self._dims,self._ids = tuple(dims),frozenset(ids)

	dims = property(lambda self:self._dims)
	ids = property(lambda self:self._ids)
	size = property(lambda self:len(self._ids))

	def __eq__(self,other):
		return isinstance(other,subspace_cluster) and self._dims==other._dims and self._ids==other._ids

	def __hash__(self):
		return hash((self._dims,self._ids))

	def __repr__(self):
		return 'subspace_cluster(dims=%s,size=%u)'%(self._dims,len(self._ids))

class subspace:
	def __init__(self,dims,units=()):
		self._dims,self._units = tuple(sorted(dims)),[]
		for new_unit in units:
			self.add_dense_unit(new_unit)

	dims = property(lambda self:self._dims)
	units = property(lambda self:tuple(self._units))
	dimensionality = property(lambda self:len(self._dims))
	coverage = property(lambda self:sum(ele.count for ele in self._units))

	def __repr__(self):
		return 'subspace(dims=%s,coverage=%u,units=%u)'%(self._dims,self.coverage,len(self._units))

	def describe(self,sep='\n'):
		return sep.join([repr(self)]+['  '+repr(ele) for ele in self._units])

	def add_dense_unit(self,new_unit):
		if new_unit.dims!=self._dims:
			raise ValueError('unit dims %s do not match subspace dims %s'%(new_unit.dims,self._dims))
		self._units.append(new_unit)

	def join(self,other,total,tau):
		"""
			合并两个(k-1)维子空间，生成k维子空间
			两个子空间的前k-2个维度相同且最后一个维度不同时才能合并，否则返回None
			合并后的子空间不含有dense unit时也返回None
		"""
		dims_1,dims_2 = self._dims,other._dims
		if len(dims_1)!=len(dims_2):
			raise SubspaceJoinError('cannot join subspaces of different dimensionality: %s and %s'%(dims_1,dims_2))
		if dims_1[:-1]!=dims_2[:-1] or dims_1[-1]==dims_2[-1]:
			return None

		s1,s2 = (self,other) if dims_1[-1]<dims_2[-1] else (other,self)
		#按前k-2个维度的intervals对s2的units进行分组
		prefix_units = {}
		for u2 in s2._units:
			prefix_units.setdefault(u2.intervals[:-1],[]).append(u2)

		new_units = []
		for u1 in s1._units:
			for u2 in prefix_units.get(u1.intervals[:-1],()):
				new_unit = u1.join(u2,total,tau)
				if not new_unit is None:
					new_units.append(new_unit)

		if len(new_units)==0:
			return None
		return subspace(s1._dims+(s2._dims[-1],),new_units)

	def determine_clusters(self):
		"""
			利用union-find获取子空间内所有连接的dense units，每一个连通分量为一个簇
			返回list of subspace_cluster，按各个连通分量第一个unit的顺序排列
		"""
		units,n_dims = self._units,len(self._dims)
		disjoint_set = DisjointSet(range(len(units)))

		#(维度位置,其它维度的intervals,interval索引) -> unit索引
		#某一unit在某一维度上的右邻居的键为(维度位置,其它维度的intervals,interval索引+1)
		faces = {}
		for unit_index,u in enumerate(units):
			intervals = u.intervals
			for dim_index in range(n_dims):
				faces[(dim_index,intervals[:dim_index]+intervals[dim_index+1:],intervals[dim_index].index)] = unit_index

		for unit_index,u in enumerate(units):
			intervals = u.intervals
			for dim_index in range(n_dims):
				neighbor_index = faces.get((dim_index,intervals[:dim_index]+intervals[dim_index+1:],intervals[dim_index].index+1))
				if not neighbor_index is None:
					disjoint_set.merge(unit_index,neighbor_index)

		clusters = []
		for unit_indices in disjoint_set.subsets():
			ids = frozenset().union(*[units[unit_index].ids for unit_index in sorted(unit_indices)])
			clusters.append(subspace_cluster(self._dims,ids))
		return clusters

def _log2_deviation(coverages,mu):
	deviation = np.abs(coverages-mu)
	deviation = deviation[deviation>0]
	return float(np.sum(np.log2(deviation))) if deviation.shape[0]>0 else 0.

#计算在各个位置将子空间划分为保留部分与剪枝部分时的code length，返回保留的子空间个数
#参照论文<<Automatic Subspace Clustering of High Dimensional Data for Data Mining Applications>>的3.1.2节
#code length相同时取最靠前的划分位置
def mdl_cut(coverages):
	"""
		MDL剪枝
		参数：
			①coverages：按递减排序的各个子空间的coverage
		返回：
			保留的子空间个数。coverages非空时返回值不小于1
	"""
	coverages = np.asarray(coverages,np.int64)
	n_subspaces = coverages.shape[0]
	if n_subspaces==0:
		return 0

	cumsum = np.cumsum(coverages)
	total_coverage = int(cumsum[-1])
	min_cl,min_index = np.inf,0
	for index in range(n_subspaces):
		n_keep,n_prune = index+1,n_subspaces-index-1
		keep_coverage,prune_coverage = int(cumsum[index]),total_coverage-int(cumsum[index])
		#均值向上取整
		mu_i = -(-keep_coverage//n_keep)
		mu_p = -(-prune_coverage//n_prune) if n_prune>0 else 0

		cl = log2_or_zero(mu_i) + log2_or_zero(mu_p) + _log2_deviation(coverages[:n_keep],mu_i) + _log2_deviation(coverages[n_keep:],mu_p)
		if cl<min_cl:
			min_cl,min_index = cl,index

	return min_index+1

class clique_engine:
	"""
		逐层搜索dense子空间，第k层的dense子空间由第k-1层的dense子空间两两合并得到
		参数：
			①X：2D array，存储数据对象
			②ids：各个数据对象的标识
			③xsi、tau：CLIQUE算法参数
			④prune：bool，是否使用MDL对各层的子空间进行剪枝
			⑤max_dim：整型，搜索的子空间的最高维度。默认为None，即数据的维度
	"""
	def __init__(self,X,ids,xsi,tau,prune=False,max_dim=None):
		N,p = X.shape
		self._X,self._ids,self._total = X,ids,N
		self._xsi,self._tau,self._prune = xsi,tau,prune
		self._max_dim = p if max_dim is None else min(p,max_dim)
		self._dimension_to_dense_subspaces = []
		self._k,self._end = 0,N==0 or self._max_dim<=0

	k = property(lambda self:self._k)
	end = property(lambda self:self._end)

	#generate k-dimensional dense subspaces
	def move_on(self):
		if self._end:
			return
		if self._k==0:
			logger.info('Identification of subspaces that contain clusters')
			dense_subspaces = self._find_one_dimensional_dense_subspace_candidates()
		else:
			dense_subspaces = self._find_dense_subspace_candidates(self._dimension_to_dense_subspaces[-1])
		if self._prune:
			dense_subspaces = self._prune_dense_subspaces(dense_subspaces)

		self._dimension_to_dense_subspaces.append(dense_subspaces)
		self._k += 1
		logger.info('%u-dimensional dense subspaces: %u',self._k,len(dense_subspaces))
		if logger.isEnabledFor(logging.DEBUG):
			for dense_subspace in dense_subspaces:
				logger.debug(dense_subspace.describe())

		if len(dense_subspaces)==0 or self._k>=self._max_dim:
			self._end = True

	def run(self):
		while not self._end:
			self.move_on()
		return self.get_clusters()

	def dense_subspaces(self,level):
		if not type(level)==int:
			raise ValueError('level should be integer')
		if level<1 or level>self._k:
			raise ValueError('level(%d) should be between 1 and the number of searched levels(%u)'%(level,self._k))
		return list(self._dimension_to_dense_subspaces[level-1])

	def get_clusters(self):
		logger.info('Identification of clusters')
		clusters = []
		for level_index,dense_subspaces in enumerate(self._dimension_to_dense_subspaces):
			n_clusters = len(clusters)
			for dense_subspace in dense_subspaces:
				subspace_clusters = dense_subspace.determine_clusters()
				logger.debug('Subspace %r clusters %u',dense_subspace,len(subspace_clusters))
				clusters.extend(subspace_clusters)
			logger.info('%u-dimensional clusters: %u',level_index+1,len(clusters)-n_clusters)
		return clusters

	#每一维度的每一个interval对应一个1维unit，共xsi*p个
	def _init_one_dimensional_units(self):
		X,ids,xsi = self._X,self._ids,self._xsi
		bounds,codes = partition_grid(X,xsi)
		logger.debug('grid bounds:\n%s',bounds)

		units = []
		for attribute_index in range(X.shape[1]):
			code,knots = codes[:,attribute_index],bounds[attribute_index]
			counts = np.bincount(code,minlength=xsi)
			sorted_indices = np.argsort(code,kind='stable')
			starts = np.concatenate(([0],np.cumsum(counts)))
			for interval_index in range(xsi):
				unit_ids = [ids[index] for index in sorted_indices[starts[interval_index]:starts[interval_index+1]]]
				units.append(unit((interval(attribute_index,interval_index,knots[interval_index],knots[interval_index+1]),),unit_ids))
		return units

	def _find_one_dimensional_dense_subspace_candidates(self):
		total,tau = self._total,self._tau
		dense_subspaces,n_dense_units = {},0
		for new_unit in self._init_one_dimensional_units():
			if not new_unit.is_dense(total,tau):
				continue
			n_dense_units += 1
			dim = new_unit.dims[0]
			if not dim in dense_subspaces:
				dense_subspaces[dim] = subspace((dim,))
			dense_subspaces[dim].add_dense_unit(new_unit)

		logger.debug('number of 1-dim dense units: %u, number of 1-dim dense subspace candidates: %u',n_dense_units,len(dense_subspaces))
		return sorted(dense_subspaces.values(),key=_coverage_order)

	#按维度排序后，每次取出第一个子空间与剩余的所有子空间合并
	def _find_dense_subspace_candidates(self,dense_subspaces):
		total,tau = self._total,self._tau
		dense_subspaces = sorted(dense_subspaces,key=lambda ele:ele.dims)

		candidates = []
		while len(dense_subspaces)>0:
			s1 = dense_subspaces.pop(0)
			for s2 in dense_subspaces:
				new_subspace = s1.join(s2,total,tau)
				if not new_subspace is None:
					candidates.append(new_subspace)

		candidates.sort(key=_coverage_order)
		return candidates

	def _prune_dense_subspaces(self,dense_subspaces):
		n_keep = mdl_cut([ele.coverage for ele in dense_subspaces])
		logger.debug('mdl pruning keeps %u of %u subspaces',n_keep,len(dense_subspaces))
		return dense_subspaces[:n_keep]

def clique(data,xsi,tau,prune=False,ids=None,max_dim=None):
	"""
		CLIQUE算法，参照论文<<Automatic Subspace Clustering of High Dimensional Data for Data Mining Applications>>
		参数：
			①data：2D array，存储数据对象
			②xsi：整型，参数ξ，每一维度的interval个数
			③tau：实数，参数τ，0<tau<1，dense unit包含的数据对象的最小比例
			④prune：bool，是否使用minimal description length对子空间进行剪枝。默认为False
			⑤ids：各个数据对象的标识，应互不相同。默认为None，即使用数据对象的索引
			⑥max_dim：整型，搜索的子空间的最高维度。默认为None，即数据的维度
		返回：
			list of subspace_cluster，按子空间维度递增排列，同一维度内按子空间的coverage递减排列
	"""
	check_clique_params(xsi,tau,prune,max_dim)
	X = np.asarray(data,dtype=np.float64)
	if X.ndim==1 and X.shape[0]==0:
		X = X.reshape(0,0)
	if not check_array(X,2):
		raise ConfigurationError('data must be a 2D array, got an array of %u dimensions'%X.ndim)
	ids = check_ids(ids,X.shape[0])
	if X.shape[0]==0:
		return []

	return clique_engine(X,ids,xsi,tau,prune,max_dim).run()
