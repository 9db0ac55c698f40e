from math import log2
from numbers import Integral,Real
from sklearn.utils import check_scalar
import numpy as np

#最大值的放宽量，使最大值落在最后一个interval内而不是其边界上
_MAX_WIDEN_ = 1e-4

class ConfigurationError(ValueError):
	pass

class SubspaceJoinError(ValueError):
	pass

log2_or_zero = lambda x:log2(x) if x>0 else 0.

#检查某一array是否具有指定的维数
def check_array(array,dim=2):
	if isinstance(array,np.ndarray) and (dim is None or len(array.shape)==dim):
			return True
	return False

def check_clique_params(xsi,tau,prune=False,max_dim=None):
	"""
		检查CLIQUE的参数，参数不合法时抛出ConfigurationError
		参数：
			①xsi：整型，每一维度的interval个数，应不小于1
			②tau：实数，density threshold，应满足0<tau<1
			③prune：bool，是否使用MDL进行子空间剪枝
			④max_dim：整型或None，搜索的子空间的最高维度，应不小于1
	"""
	try:
		check_scalar(xsi,'xsi',Integral,min_val=1)
		check_scalar(tau,'tau',Real,min_val=0.,max_val=1.,include_boundaries='neither')
		if not max_dim is None:
			check_scalar(max_dim,'max_dim',Integral,min_val=1)
	except (TypeError,ValueError) as e:
		raise ConfigurationError(str(e)) from e
	if isinstance(xsi,bool) or isinstance(max_dim,bool):
		raise ConfigurationError('xsi and max_dim must be integers, got bool')
	#NaN
	if not 0.<tau<1.:
		raise ConfigurationError('tau == %r, must be in (0,1)'%tau)
	if not isinstance(prune,(bool,np.bool_)):
		raise ConfigurationError('prune must be bool, got %s'%type(prune).__name__)

def check_ids(ids,n_samples):
	if ids is None:
		return list(range(n_samples))
	ids = ids.tolist() if isinstance(ids,np.ndarray) else list(ids)
	if len(ids)!=n_samples:
		raise ConfigurationError('ids has %u elements but data has %u samples'%(len(ids),n_samples))
	if len(set(ids))!=n_samples:
		raise ConfigurationError('ids must be unique')
	return ids

def partition_grid(X,xsi):
	"""
		将数据空间的每一维度等宽地划分为xsi个intervals
		参数：
			①X：2D array，存储数据对象，可以含有NaN
			②xsi：整型，每一维度的interval个数
		返回：
			①bounds：(p,xsi+1) array，bounds[d]为第d维各个intervals的边界，第i个interval为[bounds[d,i],bounds[d,i+1])
			②codes：(N,p) array，各个数据对象在各个维度所属interval的索引
	"""
	N,p = X.shape
	bounds,codes = np.empty((p,xsi+1),np.float64),np.zeros((N,p),np.intp)
	if N==0:
		return bounds[:0],codes

	for attribute_index in range(p):
		x = X[:,attribute_index]
		nan_indices = np.isnan(x)
		#min/max忽略NaN，全为NaN时以0为界
		if np.all(nan_indices):
			a_min,a_max = 0.,0.
		else:
			a_min,a_max = float(np.nanmin(x)),float(np.nanmax(x))
		a_max += _MAX_WIDEN_
		width = (a_max-a_min)/xsi

		knots = a_min+np.arange(xsi+1)*width
		knots[-1] = a_max
		bounds[attribute_index] = knots

		#width下溢为0时所有数据对象都属于第0个interval
		if width>0:
			code = np.searchsorted(knots[1:-1],x,side='right')
			np.clip(code,0,xsi-1,out=code)
			code[nan_indices] = 0
			codes[:,attribute_index] = code

	return bounds,codes
